from typing import Callable, Dict, Tuple

import httpx

from .config import Settings
from .errors import (InvalidRequest, ProviderError, ProviderUnconfigured,
                     UnsupportedProvider)

UA = {"User-Agent": "SpeechSearch/0.1"}
SERPAPI_URL = "https://serpapi.com/search.json"
GOOGLE_CSE_URL = "https://www.googleapis.com/customsearch/v1"

# (url, query params); credentials travel as URL parameters
Request = Tuple[str, Dict[str, str]]


def serpapi_request(q: str, settings: Settings) -> Request:
    if not settings.serpapi_key:
        raise ProviderUnconfigured("SERPAPI_KEY not configured")
    return SERPAPI_URL, {"engine": "google", "q": q, "api_key": settings.serpapi_key}


def google_request(q: str, settings: Settings) -> Request:
    if not settings.google_api_key or not settings.google_cx:
        raise ProviderUnconfigured("Google API key/CX not configured")
    return GOOGLE_CSE_URL, {"key": settings.google_api_key, "cx": settings.google_cx, "q": q}


PROVIDERS: Dict[str, Callable[[str, Settings], Request]] = {
    "SERPAPI": serpapi_request,
    "GOOGLE": google_request,
}


def resolve_provider(name: str) -> str:
    provider = (name or "").strip().upper()
    if provider not in PROVIDERS:
        raise UnsupportedProvider("Unsupported provider", details=name)
    return provider


def build_request(provider: str, q: str, settings: Settings) -> Request:
    return PROVIDERS[resolve_provider(provider)](q, settings)


async def fetch_json(client: httpx.AsyncClient, url: str, params: Dict[str, str],
                     timeout: float) -> dict:
    """One GET to the provider. Any failure becomes ``ProviderError``."""
    try:
        r = await client.get(url, params=params, timeout=timeout)
    except httpx.InvalidURL as e:
        raise InvalidRequest("Query cannot be sent to the provider", details=str(e)) from e
    except httpx.TimeoutException as e:
        raise ProviderError("Provider request timed out", details=str(e) or type(e).__name__) from e
    except httpx.HTTPError as e:
        raise ProviderError("Provider request failed", details=str(e) or type(e).__name__) from e

    if r.status_code < 200 or r.status_code >= 300:
        raise ProviderError(f"Provider returned HTTP {r.status_code}", details=r.text[:500])
    try:
        data = r.json()
    except ValueError as e:
        raise ProviderError("Provider returned malformed JSON", details=str(e)) from e
    if not isinstance(data, dict):
        raise ProviderError("Provider returned unexpected payload",
                            details=type(data).__name__)
    return data
