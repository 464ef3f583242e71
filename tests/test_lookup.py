"""
Tests for the service tag lookup clients.

Backend responses are simulated with httpx.MockTransport.
"""
import asyncio
import httpx
import pytest

from backend.lookup import (
    BackendLookupFailure, HTTPServiceTagLookup, MockServiceTagLookup, WarrantyInfo,
    create_service_tag_lookup,
)
from config.settings import LookupConfig

URL_TEMPLATE = "http://backend.test/lookup?tag={lookup_value}&debug=1"

PRODUCT_DOC = {"DebugDataElementsFound": {"ProductData": {"PRODUCT_LINE": "XPS 13"}}}
WARRANTY_DOC = {"DebugDataElementsFound": {"OfferData": {"WARRANTY_TYPE": "ProSupport", "IS_ACTIVE": "1"}}}


def make_lookup(handler, **overrides) -> HTTPServiceTagLookup:
    config = LookupConfig(url_template=URL_TEMPLATE, **overrides)
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HTTPServiceTagLookup(config, client=client)


# ──────────────────────────────────────────────────────────────
#  HTTP lookup — success
# ──────────────────────────────────────────────────────────────

class TestHTTPLookupSuccess:

    @pytest.mark.asyncio
    async def test_product_line(self):
        lookup = make_lookup(lambda request: httpx.Response(200, json=PRODUCT_DOC))
        assert await lookup.get_product_line("ABC123") == "XPS 13"
        await lookup.close()

    @pytest.mark.asyncio
    async def test_service_tag_substituted_and_quoted(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=PRODUCT_DOC)

        lookup = make_lookup(handler)
        await lookup.get_product_line("AB C/1")
        assert seen[0].method == "GET"
        assert seen[0].url.params["tag"] == "AB C/1"
        assert seen[0].url.params["debug"] == "1"

    @pytest.mark.asyncio
    async def test_active_warranty(self):
        lookup = make_lookup(lambda request: httpx.Response(200, json=WARRANTY_DOC))
        warranty = await lookup.get_warranty("ABC123")
        assert warranty == WarrantyInfo(warranty_type="ProSupport", is_active=True)
        assert warranty.status_text == "is Active"

    @pytest.mark.asyncio
    async def test_inactive_warranty(self):
        doc = {"DebugDataElementsFound": {"OfferData": {"WARRANTY_TYPE": "Basic", "IS_ACTIVE": "0"}}}
        lookup = make_lookup(lambda request: httpx.Response(200, json=doc))
        warranty = await lookup.get_warranty("ABC123")
        assert warranty.is_active is False
        assert warranty.status_text == "is Inactive"


# ──────────────────────────────────────────────────────────────
#  HTTP lookup — failures fall back
# ──────────────────────────────────────────────────────────────

class TestHTTPLookupFallback:

    @pytest.mark.asyncio
    async def test_server_error(self):
        lookup = make_lookup(lambda request: httpx.Response(500))
        assert await lookup.get_product_line("ABC123") == "LATITUDE 13"

    @pytest.mark.asyncio
    async def test_not_found(self):
        lookup = make_lookup(lambda request: httpx.Response(404, json={"error": "unknown"}))
        warranty = await lookup.get_warranty("ABC123")
        assert warranty == WarrantyInfo(warranty_type="C, NBD ONSITE", is_active=True)

    @pytest.mark.asyncio
    async def test_malformed_json(self):
        lookup = make_lookup(lambda request: httpx.Response(200, content=b"<html>oops</html>"))
        assert await lookup.get_product_line("ABC123") == "LATITUDE 13"

    @pytest.mark.asyncio
    async def test_json_not_an_object(self):
        lookup = make_lookup(lambda request: httpx.Response(200, json=["XPS"]))
        assert await lookup.get_product_line("ABC123") == "LATITUDE 13"

    @pytest.mark.asyncio
    async def test_missing_sections(self):
        lookup = make_lookup(lambda request: httpx.Response(200, json={"Other": {}}))
        assert await lookup.get_product_line("ABC123") == "LATITUDE 13"
        assert (await lookup.get_warranty("ABC123")).warranty_type == "C, NBD ONSITE"

    @pytest.mark.asyncio
    async def test_empty_product_section(self):
        doc = {"DebugDataElementsFound": {"ProductData": None}}
        lookup = make_lookup(lambda request: httpx.Response(200, json=doc))
        assert await lookup.get_product_line("ABC123") == "LATITUDE 13"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("product_data", [
        {"PRODUCT_LINE": None},
        {"PRODUCT_LINE": ""},
        {"PRODUCT_LINE": 7490},
        {"MODEL": "XPS"},
    ])
    async def test_unusable_product_line(self, product_data):
        doc = {"DebugDataElementsFound": {"ProductData": product_data}}
        lookup = make_lookup(lambda request: httpx.Response(200, json=doc))
        assert await lookup.get_product_line("ABC123") == "LATITUDE 13"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("warranty_type", [None, 42, "", ["ProSupport"]])
    async def test_unusable_warranty_type(self, warranty_type):
        doc = {"DebugDataElementsFound": {"OfferData": {"WARRANTY_TYPE": warranty_type, "IS_ACTIVE": "0"}}}
        lookup = make_lookup(lambda request: httpx.Response(200, json=doc))
        warranty = await lookup.get_warranty("ABC123")
        assert warranty == WarrantyInfo(warranty_type="C, NBD ONSITE", is_active=True)

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        lookup = make_lookup(handler)
        assert await lookup.get_product_line("ABC123") == "LATITUDE 13"

    @pytest.mark.asyncio
    async def test_timeout(self):
        async def slow(request):
            await asyncio.sleep(1)
            return httpx.Response(200, json=PRODUCT_DOC)

        lookup = make_lookup(slow, timeout_seconds=0.05)
        assert await lookup.get_product_line("ABC123") == "LATITUDE 13"

    @pytest.mark.asyncio
    async def test_configured_fallbacks(self):
        lookup = make_lookup(
            lambda request: httpx.Response(503),
            product_fallback="INSPIRON", warranty_type_fallback="LIMITED", warranty_active_fallback=False,
        )
        assert await lookup.get_product_line("ABC123") == "INSPIRON"
        assert (await lookup.get_warranty("ABC123")).status_text == "is Inactive"

    @pytest.mark.asyncio
    async def test_fetch_raises_lookup_failure(self):
        lookup = make_lookup(lambda request: httpx.Response(502))
        with pytest.raises(BackendLookupFailure) as exc:
            await lookup.fetch("ABC123")
        assert exc.value.lookup_value == "ABC123"
        assert "502" in exc.value.reason


# ──────────────────────────────────────────────────────────────
#  Attempts
# ──────────────────────────────────────────────────────────────

class TestAttempts:

    @pytest.mark.asyncio
    async def test_single_attempt_by_default(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500)

        lookup = make_lookup(handler)
        await lookup.get_product_line("ABC123")
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_retries_up_to_max_attempts(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) < 3:
                return httpx.Response(500)
            return httpx.Response(200, json=PRODUCT_DOC)

        lookup = make_lookup(handler, max_attempts=3)
        assert await lookup.get_product_line("ABC123") == "XPS 13"
        assert len(calls) == 3


# ──────────────────────────────────────────────────────────────
#  Mock lookup and factory
# ──────────────────────────────────────────────────────────────

class TestMockLookupAndFactory:

    @pytest.mark.asyncio
    async def test_mock_defaults_to_fallbacks(self):
        lookup = MockServiceTagLookup(LookupConfig())
        assert await lookup.get_product_line("ANY") == "LATITUDE 13"
        assert (await lookup.get_warranty("ANY")).status_text == "is Active"
        assert lookup.calls == ["ANY", "ANY"]

    @pytest.mark.asyncio
    async def test_mock_per_tag_documents(self):
        lookup = MockServiceTagLookup(LookupConfig(), documents={"T1": PRODUCT_DOC})
        assert await lookup.get_product_line("T1") == "XPS 13"

    def test_factory_without_url_uses_mock(self):
        assert isinstance(create_service_tag_lookup(LookupConfig()), MockServiceTagLookup)

    def test_factory_with_url_uses_http(self):
        assert isinstance(create_service_tag_lookup(LookupConfig(url_template=URL_TEMPLATE)), HTTPServiceTagLookup)

    @pytest.mark.asyncio
    async def test_close_closes_client(self):
        lookup = make_lookup(lambda request: httpx.Response(200, json=PRODUCT_DOC))
        await lookup.get_product_line("ABC123")
        await lookup.close()
        assert lookup.client.is_closed
