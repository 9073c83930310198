"""Tests for CacheExporter and ExportRouter."""

from __future__ import annotations

import asyncio
import json

from aggregator.exporters import CacheExporter, Exporter, ExportRouter
from conftest import make_document

JSON_RESPONSE = (
    '[{"Service":{"Name":"uw-service-refdata","Namespace":"billing",'
    '"BaseURL":"http://uw-service-refdata.billing/"},'
    '"Doc":{"name":"uw-service-refdata","description":"uw-service-refdata",'
    '"owners":[{"name":"Billing","slack":"#billing"}],'
    '"links":[{"url":"http://readme","description":"readme"}],'
    '"build-info":{"revision":"revision"}}}]'
)


class _FailingExporter(Exporter):
    name = "failing"

    async def handle(self, document):
        raise RuntimeError(f"cannot export {document.service.name}")


class _BlockedExporter(Exporter):
    name = "blocked"

    def __init__(self):
        self.release = asyncio.Event()
        self.started = 0

    async def handle(self, document):
        self.started += 1
        await self.release.wait()


class TestCacheExporter:
    async def test_handle_stores_document(self):
        cache = CacheExporter()
        doc = make_document()
        await cache.handle(doc)
        assert cache.snapshot() == [doc]

    async def test_same_name_overwrites(self):
        cache = CacheExporter()
        await cache.handle(make_document("svc", "billing", payload=b"old"))
        await cache.handle(make_document("svc", "billing", payload=b"new"))
        [doc] = cache.snapshot()
        assert doc.payload == b"new"

    async def test_same_name_other_namespace_overwrites(self):
        cache = CacheExporter()
        await cache.handle(make_document("svc", "billing"))
        await cache.handle(make_document("svc", "crm"))
        assert len(cache) == 1
        assert cache.snapshot()[0].service.namespace == "crm"

    async def test_concurrent_distinct_handles(self):
        cache = CacheExporter()
        await asyncio.gather(*(cache.handle(make_document(f"svc-{i}")) for i in range(100)))
        assert len(cache.snapshot()) == 100

    async def test_snapshot_is_a_copy(self):
        cache = CacheExporter()
        await cache.handle(make_document("a"))
        snap = cache.snapshot()
        await cache.handle(make_document("b"))
        assert [d.service.name for d in snap] == ["a"]

    async def test_render_json(self):
        cache = CacheExporter()
        await cache.handle(make_document())
        assert json.dumps(cache.render_json(), separators=(",", ":")) == JSON_RESPONSE

    async def test_render_json_raw_payload(self):
        cache = CacheExporter()
        await cache.handle(make_document("svc", payload=b"about endpoint response"))
        assert cache.render_json()[0]["Doc"] == "about endpoint response"

    async def test_render_html(self):
        cache = CacheExporter()
        await cache.handle(make_document())
        page = cache.render_html()
        assert page.startswith("<!DOCTYPE html>")
        assert (
            '<td><a href="/../../../billing/services/uw-service-refdata:80/__/about">'
            "billing.uw-service-refdata</a></td>"
        ) in page

    async def test_render_html_escapes(self):
        cache = CacheExporter()
        await cache.handle(make_document("<script>", "ns"))
        assert "<script>" not in cache.render_html()


class TestExportRouter:
    async def test_every_exporter_receives_document(self, errors):
        first, second = CacheExporter(), CacheExporter()
        router = ExportRouter([first, second], asyncio.Queue(), errors)

        router.dispatch(make_document())
        await router.drain()

        assert len(first) == 1
        assert len(second) == 1
        assert errors.pending() == []

    async def test_failure_reported_and_isolated(self, errors):
        cache = CacheExporter()
        router = ExportRouter([_FailingExporter(), cache], asyncio.Queue(), errors)

        router.dispatch(make_document("svc"))
        await router.drain()

        assert len(cache) == 1
        assert errors.pending() == ["cannot export svc"]

    async def test_slow_exporter_does_not_block_others(self, errors):
        blocked, cache = _BlockedExporter(), CacheExporter()
        documents: asyncio.Queue = asyncio.Queue(maxsize=10)
        router = ExportRouter([blocked, cache], documents, errors)
        router.start()

        for i in range(3):
            await documents.put(make_document(f"svc-{i}"))
        await asyncio.wait_for(documents.join(), timeout=5)
        for _ in range(10):
            await asyncio.sleep(0)

        assert len(cache) == 3
        assert blocked.started == 3

        blocked.release.set()
        await asyncio.wait_for(router.drain(), timeout=5)
        await router.stop()

    async def test_concurrency_ceiling(self, errors):
        blocked = _BlockedExporter()
        router = ExportRouter([blocked], asyncio.Queue(), errors, max_concurrency=2)

        for i in range(5):
            router.dispatch(make_document(f"svc-{i}"))
        for _ in range(10):
            await asyncio.sleep(0)
        assert blocked.started == 2

        blocked.release.set()
        await asyncio.wait_for(router.drain(), timeout=5)
        assert blocked.started == 5

    async def test_full_error_buffer_drops(self, errors):
        router = ExportRouter([_FailingExporter()], asyncio.Queue(), errors)
        for i in range(15):
            router.dispatch(make_document(f"svc-{i}"))
        await router.drain()

        assert len(errors.pending()) == 10
        assert errors.dropped == 5

    async def test_messageless_failure_names_exporter(self, errors):
        class _SilentFailure(Exporter):
            name = "silent"

            async def handle(self, document):
                raise RuntimeError()

        router = ExportRouter([_SilentFailure()], asyncio.Queue(), errors)
        router.dispatch(make_document())
        await router.drain()

        assert errors.pending() == ["Export to silent failed: RuntimeError()"]
