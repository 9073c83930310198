"""Runtime settings — command-line flags with environment-variable fallbacks."""

from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass

from aggregator.errors import ConfigError

PAYLOAD_FORMATS = ("json", "raw")

_SA_DIR = "/var/run/secrets/kubernetes.io/serviceaccount"


@dataclass
class Settings:
    port: int = 8080
    host: str = "0.0.0.0"
    label: str = "about=true"

    # Kubernetes
    kubernetes_service_host: str = ""
    kubernetes_service_port: str = ""
    kubernetes_token_path: str = f"{_SA_DIR}/token"
    kubernetes_cert_path: str = f"{_SA_DIR}/ca.crt"

    # Confluence
    confluence_host: str = ""
    confluence_credentials: str = ""  # base64 "user:pass"
    confluence_page_id: str = ""

    # Pipeline
    payload_format: str = "json"
    workers: int = 5
    queue_size: int = 10
    export_concurrency: int = 64
    request_timeout: float = 30.0  # 0 disables

    log_level: str = "INFO"

    def validate(self) -> None:
        if self.payload_format not in PAYLOAD_FORMATS:
            raise ConfigError(
                f"payload format must be one of {', '.join(PAYLOAD_FORMATS)}, "
                f"got {self.payload_format!r}"
            )
        for name in ("workers", "queue_size", "export_concurrency"):
            if getattr(self, name) < 1:
                raise ConfigError(f"{name} must be at least 1")
        if self.request_timeout < 0:
            raise ConfigError("request_timeout must not be negative")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ConfigError(f"unknown log level {self.log_level!r}")


def _env(name: str, default: str) -> str:
    return os.environ.get(name, default)


def build_parser() -> argparse.ArgumentParser:
    d = Settings()
    parser = argparse.ArgumentParser(
        prog="about-aggregator",
        description="Calls /__/about for services that expose the endpoint",
    )

    def opt(flag: str, env: str, default, description: str, cast=str) -> None:
        parser.add_argument(
            flag,
            type=cast,
            default=cast(_env(env, str(default))),
            help=f"{description} (env {env}, default: {default!r})",
        )

    opt("--port", "PORT", d.port, "Port to listen on", int)
    opt("--host", "HOST", d.host, "Interface to bind")
    opt("--label", "LABEL", d.label, "Label to filter services via kubernetes api")
    opt("--kubernetes-service-host", "KUBERNETES_SERVICE_HOST", d.kubernetes_service_host,
        "Kubernetes service host")
    opt("--kubernetes-service-port", "KUBERNETES_SERVICE_PORT", d.kubernetes_service_port,
        "Kubernetes service port")
    opt("--kubernetes-token-path", "KUBERNETES_TOKEN_PATH", d.kubernetes_token_path,
        "Path to the kubernetes api token")
    opt("--kubernetes-cert-path", "KUBERNETES_CERT_PATH", d.kubernetes_cert_path,
        "Path to the kubernetes cert")
    opt("--confluence-host", "CONFLUENCE_HOST", d.confluence_host, "Confluence host")
    opt("--confluence-credentials", "CONFLUENCE_CREDENTIALS", d.confluence_credentials,
        "Base 64 encoded <user:pass> used in Basic authentication")
    opt("--confluence-page-id", "CONFLUENCE_PAGE_ID", d.confluence_page_id, "Confluence page id")
    opt("--payload-format", "PAYLOAD_FORMAT", d.payload_format,
        "How to read __/about bodies: json (structured) or raw (opaque bytes)")
    opt("--workers", "FETCH_WORKERS", d.workers, "Concurrent __/about fetchers", int)
    opt("--queue-size", "QUEUE_SIZE", d.queue_size, "Capacity of each pipeline buffer", int)
    opt("--export-concurrency", "EXPORT_CONCURRENCY", d.export_concurrency,
        "Maximum sink calls in flight", int)
    opt("--request-timeout", "REQUEST_TIMEOUT", d.request_timeout,
        "Outbound HTTP timeout in seconds, 0 for none", float)
    opt("--log-level", "LOG_LEVEL", d.log_level, "Logging level")
    return parser


def load_settings(argv: list[str] | None = None) -> Settings:
    """Parse *argv* (``sys.argv[1:]`` when None) into validated :class:`Settings`."""
    try:
        args = build_parser().parse_args(argv)
    except ValueError as exc:
        # a malformed numeric environment variable
        raise ConfigError(str(exc)) from exc
    settings = Settings(**vars(args))
    settings.validate()
    return settings
