"""
Service Tag Lookup — product line and warranty details for a service tag.

The backend answers a single GET (URL template with `{lookup_value}`
substituted) with a JSON document of the shape:

    {"DebugDataElementsFound": {
        "ProductData": {"PRODUCT_LINE": "LATITUDE 7490"},
        "OfferData":   {"WARRANTY_TYPE": "ProSupport", "IS_ACTIVE": "1"}}}

Lookups never fail the conversation. Non-200 responses, transport errors,
timeouts and malformed bodies are raised internally as BackendLookupFailure,
logged, and replaced by the configured fallback values.
"""
from __future__ import annotations

import abc
import asyncio
import structlog
from typing import Any, Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from config.settings import LookupConfig, get_settings

logger = structlog.get_logger()


class BackendLookupFailure(Exception):
    """A lookup could not produce a usable response."""

    def __init__(self, lookup_value: str, reason: str):
        self.lookup_value = lookup_value
        self.reason = reason
        super().__init__(f"Lookup for '{lookup_value}' failed: {reason}")


class WarrantyInfo(BaseModel):
    warranty_type: str
    is_active: bool = True

    @property
    def status_text(self) -> str:
        return "is Active" if self.is_active else "is Inactive"


class ServiceTagLookup(abc.ABC):
    """Abstract base for service tag backends."""

    def __init__(self, config: LookupConfig = None):
        self.config = config or get_settings().lookup

    @abc.abstractmethod
    async def fetch(self, lookup_value: str) -> dict[str, Any]:
        """Return the decoded backend document or raise BackendLookupFailure."""
        ...

    async def get_product_line(self, service_tag: str) -> str:
        try:
            document = await self.fetch(service_tag)
            product = document["DebugDataElementsFound"]["ProductData"]
            if not product:
                return self.config.product_fallback
            product_line = product.get("PRODUCT_LINE")
            if isinstance(product_line, str) and product_line.strip():
                return product_line
            logger.warning("backend_lookup_failed", lookup="product",
                           reason=f"unusable PRODUCT_LINE: {product_line!r}")
        except BackendLookupFailure as e:
            logger.warning("backend_lookup_failed", lookup="product", reason=e.reason)
        except (KeyError, TypeError, AttributeError) as e:
            logger.warning("backend_lookup_failed", lookup="product", reason=f"unexpected payload: {e!r}")
        return self.config.product_fallback

    async def get_warranty(self, service_tag: str) -> WarrantyInfo:
        fallback = WarrantyInfo(
            warranty_type=self.config.warranty_type_fallback,
            is_active=self.config.warranty_active_fallback,
        )
        try:
            document = await self.fetch(service_tag)
            offer = document["DebugDataElementsFound"]["OfferData"]
            if not offer:
                return fallback
            warranty_type = offer.get("WARRANTY_TYPE")
            if not isinstance(warranty_type, str) or not warranty_type.strip():
                logger.warning("backend_lookup_failed", lookup="warranty",
                               reason=f"unusable WARRANTY_TYPE: {warranty_type!r}")
                return fallback
            return WarrantyInfo(
                warranty_type=warranty_type,
                is_active=str(offer.get("IS_ACTIVE")) == "1",
            )
        except BackendLookupFailure as e:
            logger.warning("backend_lookup_failed", lookup="warranty", reason=e.reason)
        except (KeyError, TypeError, AttributeError, ValidationError) as e:
            logger.warning("backend_lookup_failed", lookup="warranty", reason=f"unexpected payload: {e!r}")
        return fallback

    async def close(self) -> None:
        pass


class HTTPServiceTagLookup(ServiceTagLookup):
    """
    Calls the configured lookup URL. Each attempt is bounded by
    `timeout_seconds`; `max_attempts` attempts are made in total.
    """

    def __init__(self, config: LookupConfig = None, client: httpx.AsyncClient = None):
        super().__init__(config)
        self.client: Optional[httpx.AsyncClient] = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self.client is None or self.client.is_closed:
            self.client = httpx.AsyncClient(timeout=self.config.timeout_seconds)
        return self.client

    def build_url(self, lookup_value: str) -> str:
        return self.config.url_template.replace("{lookup_value}", quote(lookup_value, safe=""))

    async def fetch(self, lookup_value: str) -> dict[str, Any]:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(max(1, self.config.max_attempts)),
            retry=retry_if_exception_type(BackendLookupFailure),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._fetch_once(lookup_value)

    async def _fetch_once(self, lookup_value: str) -> dict[str, Any]:
        client = await self._get_client()
        url = self.build_url(lookup_value)
        try:
            response = await asyncio.wait_for(client.get(url), timeout=self.config.timeout_seconds)
        except asyncio.TimeoutError:
            raise BackendLookupFailure(lookup_value, "timed out")
        except httpx.HTTPError as e:
            raise BackendLookupFailure(lookup_value, f"transport error: {e}")

        if response.status_code != 200:
            raise BackendLookupFailure(lookup_value, f"status {response.status_code}")
        try:
            document = response.json()
        except ValueError as e:
            raise BackendLookupFailure(lookup_value, f"malformed JSON: {e}")
        if not isinstance(document, dict):
            raise BackendLookupFailure(lookup_value, "response is not a JSON object")

        logger.debug("backend_lookup_ok", status=response.status_code)
        return document

    async def close(self) -> None:
        if self.client is not None and not self.client.is_closed:
            await self.client.aclose()


class MockServiceTagLookup(ServiceTagLookup):
    """
    Mock backend for development and testing. Answers every tag with the
    same canned document, unless a per-tag document is supplied.
    """

    def __init__(self, config: LookupConfig = None, documents: dict[str, dict] = None):
        super().__init__(config)
        self.documents = documents or {}
        self.calls: list[str] = []

    async def fetch(self, lookup_value: str) -> dict[str, Any]:
        self.calls.append(lookup_value)
        if lookup_value in self.documents:
            return self.documents[lookup_value]
        return {
            "DebugDataElementsFound": {
                "ProductData": {"PRODUCT_LINE": self.config.product_fallback},
                "OfferData": {
                    "WARRANTY_TYPE": self.config.warranty_type_fallback,
                    "IS_ACTIVE": "1" if self.config.warranty_active_fallback else "0",
                },
            }
        }


def create_service_tag_lookup(config: LookupConfig = None) -> ServiceTagLookup:
    """Factory function to create the appropriate lookup client."""
    config = config or get_settings().lookup
    if config.url_template:
        return HTTPServiceTagLookup(config)
    logger.warning("using_mock_lookup", reason="no lookup url_template configured")
    return MockServiceTagLookup(config)
