import os
from typing import List, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel


class Settings(BaseModel):
    provider: str = "SERPAPI"
    serpapi_key: Optional[str] = None
    google_api_key: Optional[str] = None
    google_cx: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 3000
    cache_ttl_sec: float = 300
    cache_capacity: int = 1024
    rate_limit: int = 120
    rate_window_sec: float = 60
    provider_timeout_sec: float = 10.0
    max_query_chars: int = 2048
    max_body_bytes: int = 100_000
    sweep_interval_sec: float = 60
    frontend_dir: str = "frontend"
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        origins = env.get("SPEECHSEARCH_CORS_ORIGINS", "*")
        return cls(
            provider=env.get("PROVIDER", "SERPAPI"),
            serpapi_key=env.get("SERPAPI_KEY") or None,
            google_api_key=env.get("GOOGLE_API_KEY") or None,
            google_cx=env.get("GOOGLE_CX") or None,
            host=env.get("HOST", "0.0.0.0"),
            port=int(env.get("PORT", "3000")),
            cache_ttl_sec=float(env.get("SPEECHSEARCH_CACHE_TTL", "300")),
            cache_capacity=int(env.get("SPEECHSEARCH_CACHE_CAPACITY", "1024")),
            rate_limit=int(env.get("SPEECHSEARCH_RATE_LIMIT", "120")),
            rate_window_sec=float(env.get("SPEECHSEARCH_RATE_WINDOW", "60")),
            provider_timeout_sec=float(env.get("SPEECHSEARCH_PROVIDER_TIMEOUT", "10")),
            max_query_chars=int(env.get("SPEECHSEARCH_MAX_QUERY_CHARS", "2048")),
            max_body_bytes=int(env.get("SPEECHSEARCH_MAX_BODY_BYTES", "100000")),
            sweep_interval_sec=float(env.get("SPEECHSEARCH_SWEEP_SEC", "60")),
            frontend_dir=env.get("SPEECHSEARCH_FRONTEND_DIR", "frontend"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=env.get("SPEECHSEARCH_LOG_LEVEL", "INFO").upper(),
        )


def load_settings() -> Settings:
    load_dotenv()
    return Settings.from_env()
