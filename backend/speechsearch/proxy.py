from dataclasses import dataclass
from typing import List, Optional, Tuple

import httpx

from .cache import QueryCache, cache_key
from .config import Settings
from .errors import InvalidRequest
from .models import NormalizedResult
from .normalizer import Normalizer
from .providers import UA, build_request, fetch_json, resolve_provider


@dataclass
class ProxyResult:
    cached: bool
    data: dict


class SearchProxy:
    """Cache-fronted proxy to the one search provider chosen in settings.

    Errors are never cached; a provider failure costs the next identical
    query another outbound call.
    """

    def __init__(self, settings: Settings, cache: Optional[QueryCache] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 normalizer: Optional[Normalizer] = None):
        self.settings = settings
        self.cache = cache if cache is not None else QueryCache(
            capacity=settings.cache_capacity, ttl_sec=settings.cache_ttl_sec)
        self.normalizer = normalizer if normalizer is not None else Normalizer()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def provider(self) -> str:
        return (self.settings.provider or "").strip().upper()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.settings.provider_timeout_sec,
                headers=UA,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def search(self, query: Optional[str]) -> ProxyResult:
        q = (query or "").strip()
        if not q:
            raise InvalidRequest("Missing q in request body")
        if len(q) > self.settings.max_query_chars:
            raise InvalidRequest(f"Query longer than {self.settings.max_query_chars} characters")
        provider = resolve_provider(self.settings.provider)

        key = cache_key(provider, q)
        cached = self.cache.get(key)
        if cached is not None:
            return ProxyResult(cached=True, data=cached)

        url, params = build_request(provider, q, self.settings)
        data = await fetch_json(self._get_client(), url, params,
                                timeout=self.settings.provider_timeout_sec)
        self.cache.set(key, data)
        return ProxyResult(cached=False, data=data)

    async def search_normalized(self, query: Optional[str]) -> Tuple[bool, List[NormalizedResult]]:
        res = await self.search(query)
        return res.cached, self.normalizer.normalize(res.data)
