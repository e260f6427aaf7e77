import asyncio
from typing import Any, Dict, Optional

import aiohttp
from loguru import logger
from pydantic import ValidationError

from f2pool_exporter.models.api_models import AccountSnapshot, Resource
from f2pool_exporter.utils.exceptions import SnapshotDecodeError, UpstreamError

DEFAULT_API_URL = "https://api.f2pool.com/"
DEFAULT_TIMEOUT_S = 10.0


class PoolAPIClient:
    """Read-only client for the public f2pool statistics API.

    One instance (and one aiohttp session) is shared by every scrape. The
    session is created lazily inside the running loop and must be closed
    with `close()`.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        verify_tls: bool = False,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.timeout_s = timeout_s
        self.verify_tls = verify_tls
        self._session = session

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout_s)
            # verify_tls=False accepts any certificate chain
            connector = aiohttp.TCPConnector(ssl=self.verify_tls)
            self._session = aiohttp.ClientSession(timeout=timeout, connector=connector)
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _get_json(self, resource: Resource) -> Dict[str, Any]:
        url = self.base_url + resource.path
        try:
            async with self._get_session().get(url) as r:
                text = await r.text()
                if r.status >= 400:
                    raise UpstreamError(resource.path, f"GET {url} failed {r.status}: {text[:200]}")
                return await r.json(content_type=None)
        except UpstreamError:
            raise
        except asyncio.TimeoutError as e:
            raise UpstreamError(resource.path, f"GET {url} timed out after {self.timeout_s}s") from e
        except aiohttp.ClientError as e:
            raise UpstreamError(resource.path, f"GET {url} failed: {e}") from e
        except ValueError as e:
            raise UpstreamError(resource.path, f"GET {url} returned invalid JSON: {e}") from e

    async def fetch_account(self, resource: Resource) -> AccountSnapshot:
        payload = await self._get_json(resource)
        if not isinstance(payload, dict):
            raise SnapshotDecodeError(resource.path, f"expected a JSON object, got {type(payload).__name__}")
        try:
            snapshot = AccountSnapshot.model_validate(payload)
        except ValidationError as e:
            raise SnapshotDecodeError(resource.path, str(e)) from e
        logger.debug(f"Fetched {resource.path}: {len(snapshot.workers)} workers")
        return snapshot
