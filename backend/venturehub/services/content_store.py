"""Content-addressed storage client (Pinata IPFS pinning API)"""
import json
from typing import Any, Dict, Optional

import httpx
import structlog

from venturehub.config import get_settings
from venturehub.errors import ExternalServiceFailure

logger = structlog.get_logger()
settings = get_settings()

LOCATOR_SCHEME = "ipfs://"


class ContentStore:
    """Pins files and JSON documents and returns their ipfs:// locators"""

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = (api_url or settings.pinata_api_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.pinata_api_key
        self.api_secret = api_secret if api_secret is not None else settings.pinata_api_secret
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    async def connect(self) -> None:
        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=self.api_url,
                headers={
                    "pinata_api_key": self.api_key,
                    "pinata_secret_api_key": self.api_secret,
                },
                timeout=httpx.Timeout(settings.content_store_timeout),
                transport=self._transport,
            )

    async def disconnect(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None:
            raise RuntimeError("Content store not connected. Call connect() first.")
        return self._http

    async def store(self, data: bytes, name: str, content_type: str = "application/octet-stream") -> str:
        """Pin raw bytes (e.g. a logo image)"""
        return await self._pin(
            "/pinning/pinFileToIPFS",
            name,
            files={"file": (name, data, content_type)},
            data={"pinataMetadata": json.dumps({"name": name})},
        )

    async def store_json(self, document: Dict[str, Any], name: str) -> str:
        """Pin a JSON document (e.g. token metadata)"""
        return await self._pin(
            "/pinning/pinJSONToIPFS",
            name,
            json={"pinataContent": document, "pinataMetadata": {"name": name}},
        )

    async def _pin(self, path: str, name: str, **request: Any) -> str:
        try:
            response = await self.http.post(path, **request)
            response.raise_for_status()
            cid = response.json().get("IpfsHash")
        except httpx.HTTPStatusError as e:
            raise ExternalServiceFailure(
                f"Content store rejected {name}: HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ExternalServiceFailure(f"Content store upload of {name} failed: {e}") from e

        if not cid:
            raise ExternalServiceFailure(f"Content store returned no identifier for {name}")

        locator = f"{LOCATOR_SCHEME}{cid}"
        logger.info("Content pinned", name=name, locator=locator)
        return locator


# Singleton instance
_content_store: Optional[ContentStore] = None


async def get_content_store() -> ContentStore:
    """Get or create content store singleton"""
    global _content_store
    if _content_store is None:
        _content_store = ContentStore()
        await _content_store.connect()
    return _content_store


async def close_content_store() -> None:
    global _content_store
    if _content_store is not None:
        await _content_store.disconnect()
        _content_store = None
