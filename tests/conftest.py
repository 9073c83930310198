"""pytest configuration and shared fakes for About Aggregator tests."""

from __future__ import annotations

import pytest

from aggregator.discovery import ControlPlane
from aggregator.errors import ErrorSink
from aggregator.models import AboutDoc, BuildInfo, Link, MetadataDocument, Owner, ServiceDescriptor


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


class FakeControlPlane(ControlPlane):
    """In-memory cluster: ``{namespace: {service: {label: value}}}``."""

    def __init__(self, cluster=None, namespace_error=None, service_error=None):
        self.cluster = cluster if cluster is not None else {
            "billing": {"someService": {"about": "true"}},
        }
        self.namespace_error = namespace_error
        self.service_error = service_error
        self.service_calls: list[tuple[str, str]] = []

    def list_namespaces(self):
        if self.namespace_error:
            raise self.namespace_error
        return list(self.cluster)

    def list_services(self, namespace, label_selector):
        self.service_calls.append((namespace, label_selector))
        if self.service_error:
            raise self.service_error
        wanted = dict(part.split("=", 1) for part in label_selector.split(","))
        return [
            name
            for name, labels in self.cluster[namespace].items()
            if all(labels.get(k) == v for k, v in wanted.items())
        ]


def make_service(name="uw-service-refdata", namespace="billing", base_url=None):
    return ServiceDescriptor(
        name=name,
        namespace=namespace,
        base_url=base_url or f"http://{name}.{namespace}/",
    )


def make_about(name="uw-service-refdata"):
    return AboutDoc(
        name=name,
        description=name,
        owners=[Owner(name="Billing", slack="#billing")],
        links=[Link(url="http://readme", description="readme")],
        build_info=BuildInfo(revision="revision"),
    )


def make_document(name="uw-service-refdata", namespace="billing", payload=None):
    return MetadataDocument(
        service=make_service(name, namespace),
        payload=payload if payload is not None else make_about(name),
    )


@pytest.fixture
def errors():
    return ErrorSink(capacity=10)


@pytest.fixture
def control_plane():
    return FakeControlPlane()
