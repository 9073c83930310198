"""Label-filtered service discovery.

A scan lists every namespace, then the matching services in each, and puts
one :class:`ServiceDescriptor` per service on the output queue. The first
listing failure ends the scan and is reported once through the
:class:`ErrorSink`; nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging

from aggregator.discovery.kubernetes import ControlPlane
from aggregator.errors import ErrorSink
from aggregator.models import ServiceDescriptor

logger = logging.getLogger(__name__)


class ServiceRegistry:
    def __init__(
        self,
        control_plane: ControlPlane,
        label: str,
        out: asyncio.Queue[ServiceDescriptor],
        errors: ErrorSink,
    ) -> None:
        self.control_plane = control_plane
        self.label = label
        self.out = out
        self.errors = errors

    async def discover(self, label: str | None = None) -> int:
        """Scan the cluster for services matching *label* (default: configured label).

        Safe to call again at any time; overlapping scans are not coordinated.

        Returns:
            Number of descriptors emitted.
        """
        selector = self.label if label is None else label
        if not selector:
            logger.debug("Empty label selector, nothing to discover")
            return 0

        loop = asyncio.get_running_loop()
        try:
            namespaces = await loop.run_in_executor(None, self.control_plane.list_namespaces)
        except Exception as exc:
            self.errors.report(f"Could not get namespaces via kubernetes api: ({exc})")
            return 0

        emitted = 0
        for namespace in namespaces:
            try:
                names = await loop.run_in_executor(
                    None, self.control_plane.list_services, namespace, selector
                )
            except Exception as exc:
                self.errors.report(f"Could not get services via kubernetes api: ({exc})")
                return emitted

            for name in names:
                await self.out.put(ServiceDescriptor(
                    name=name,
                    namespace=namespace,
                    base_url=f"http://{name}.{namespace}/",
                ))
                emitted += 1

        logger.info("discovery complete — %d service(s) matching %r", emitted, selector)
        return emitted
