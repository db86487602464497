import asyncio
import logging
import os
import time
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .cache import QueryCache
from .config import Settings, load_settings
from .errors import InvalidRequest, PayloadTooLarge, RateLimited, SearchError
from .models import (ErrorResponse, HealthResponse, NormalizedSearchResponse,
                     SearchRequest, SearchResponse)
from .proxy import ProxyResult, SearchProxy
from .ratelimit import FixedWindowLimiter

log = logging.getLogger("speechsearch")

ERROR_RESPONSES = {code: {"model": ErrorResponse} for code in (400, 413, 429, 500)}


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def enforce_rate_limit(request: Request):
    # every request counts, cache hits included
    limiter: FixedWindowLimiter = request.app.state.limiter
    if not limiter.allow(client_ip(request)):
        raise RateLimited(retry_after=limiter.retry_after())


async def _sweep(app: FastAPI, interval: float):
    while True:
        await asyncio.sleep(interval)
        dropped = app.state.proxy.cache.purge_expired()
        stale = app.state.limiter.purge_stale()
        if dropped or stale:
            log.debug("sweep dropped %d cache entries, %d rate buckets", dropped, stale)


def create_app(settings: Optional[Settings] = None,
               proxy: Optional[SearchProxy] = None,
               limiter: Optional[FixedWindowLimiter] = None) -> FastAPI:
    settings = settings if settings is not None else load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(message)s"
    )

    app = FastAPI(title="SpeechSearch", version="0.1.0",
                  dependencies=[Depends(enforce_rate_limit)])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins, allow_methods=["*"], allow_headers=["*"]
    )
    app.state.settings = settings
    app.state.proxy = proxy if proxy is not None else SearchProxy(
        settings, QueryCache(capacity=settings.cache_capacity, ttl_sec=settings.cache_ttl_sec))
    app.state.limiter = limiter if limiter is not None else FixedWindowLimiter(
        limit=settings.rate_limit, window_sec=settings.rate_window_sec)
    app.state.sweeper = None

    @app.middleware("http")
    async def _limit_body(request: Request, call_next):
        size = request.headers.get("content-length")
        if size and size.isdigit() and int(size) > settings.max_body_bytes:
            err = PayloadTooLarge(f"Request body larger than {settings.max_body_bytes} bytes")
            return JSONResponse(status_code=err.status_code, content=err.to_dict())
        return await call_next(request)

    @app.exception_handler(SearchError)
    async def _search_error(request: Request, exc: SearchError):
        headers = None
        if isinstance(exc, RateLimited):
            headers = {"Retry-After": str(max(1, int(exc.retry_after + 0.999)))}
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def _bad_body(request: Request, exc: RequestValidationError):
        err = InvalidRequest("Invalid request body")
        return JSONResponse(status_code=err.status_code, content=err.to_dict())

    @app.on_event("startup")
    async def _startup():
        if settings.sweep_interval_sec > 0:
            app.state.sweeper = asyncio.create_task(_sweep(app, settings.sweep_interval_sec))
        log.info("SpeechSearch ready (PROVIDER=%s)", settings.provider)

    @app.on_event("shutdown")
    async def _shutdown():
        if app.state.sweeper:
            app.state.sweeper.cancel()
            app.state.sweeper = None
        await app.state.proxy.close()

    async def _run_search(request: Request, q: Optional[str], normalized: bool = False):
        sp: SearchProxy = request.app.state.proxy
        t0 = time.time()
        try:
            if normalized:
                cached, results = await sp.search_normalized(q)
            else:
                res: ProxyResult = await sp.search(q)
                cached = res.cached
        except SearchError as e:
            log.warning('q="%s" provider=%s error=%s details=%s',
                        (q or "").strip(), sp.provider, e.message, e.details)
            raise
        except Exception as e:
            log.exception("/search failed: %s", e)
            raise SearchError("Server error", details=str(e))
        dt = (time.time() - t0) * 1000
        log.info('q="%s" provider=%s cached=%s latency_ms=%.1f ip=%s',
                 q.strip(), sp.provider, cached, dt, client_ip(request))
        return (cached, results) if normalized else res

    @app.get("/health", response_model=HealthResponse)
    def health():
        return HealthResponse(ok=True, ts=int(time.time() * 1000))

    @app.post("/search", response_model=SearchResponse, responses=ERROR_RESPONSES)
    async def search(request: Request, body: SearchRequest):
        res = await _run_search(request, body.q)
        return SearchResponse(cached=res.cached, data=res.data)

    @app.post("/search/results", response_model=NormalizedSearchResponse,
              responses=ERROR_RESPONSES)
    async def search_results(request: Request, body: SearchRequest):
        cached, results = await _run_search(request, body.q, normalized=True)
        return NormalizedSearchResponse(query=body.q.strip(), cached=cached, results=results)

    @app.get("/stats")
    def stats(request: Request):
        sp: SearchProxy = request.app.state.proxy
        lim: FixedWindowLimiter = request.app.state.limiter
        return {
            "provider": sp.provider,
            "cache": {"size": len(sp.cache), "ttl_sec": sp.cache.ttl, "capacity": sp.cache.capacity},
            "rate_limit": {"limit": lim.limit, "window_sec": lim.window,
                           "remaining": lim.remaining(client_ip(request))},
        }

    # frontend last so API routes win
    if settings.frontend_dir and os.path.isdir(settings.frontend_dir):
        app.mount("/", StaticFiles(directory=settings.frontend_dir, html=True), name="frontend")

    return app


app = create_app()


def run():
    import uvicorn

    settings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
