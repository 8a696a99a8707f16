"""
HTTP client for the logistics object catalog.
Fetches candidate objects for reference fields, scoped by their type IRI.
"""

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from .exceptions import OptionLoadError

logger = logging.getLogger(__name__)

ACCEPT_HEADERS = {"Accept": "application/ld+json, application/json"}


class CatalogClient:
    """Async client for "GET {base_url}/logistics-objects?type=<IRI>"."""

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize catalog client.

        Args:
            base_url: Catalog service URL.
            timeout: Request timeout in seconds.
            client: Shared httpx client; when omitted each fetch opens its own,
                so the client is not tied to one event loop.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def build_url(self, type_iri: str) -> str:
        return f"{self.base_url}/logistics-objects?type={quote(type_iri, safe='')}"

    async def fetch(self, type_iri: str) -> Any:
        """Fetch catalog objects of a type.

        Args:
            type_iri: Type IRI to scope the lookup (URL-encoded here).

        Returns:
            Parsed JSON: a single object or a {"@graph": [...]} envelope.

        Raises:
            OptionLoadError: On transport errors, error statuses or invalid JSON.
        """
        url = self.build_url(type_iri)
        logger.debug(f"Fetching catalog objects: {url}")

        try:
            if self._client is not None:
                response = await self._client.get(url, headers=ACCEPT_HEADERS)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url, headers=ACCEPT_HEADERS)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            raise OptionLoadError(type_iri, e, f"Catalog request timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise OptionLoadError(
                type_iri, e, f"Catalog returned {e.response.status_code} for {type_iri}"
            ) from e
        except httpx.RequestError as e:
            raise OptionLoadError(type_iri, e, f"Catalog request failed: {e}") from e
        except ValueError as e:
            raise OptionLoadError(type_iri, e, f"Catalog returned invalid JSON: {e}") from e

    async def aclose(self) -> None:
        """Close the shared HTTP client, if any."""
        if self._client is not None:
            await self._client.aclose()
