from pydantic import BaseModel
from typing import Any, Dict, List, Optional


class SearchRequest(BaseModel):
    q: Optional[str] = None


class NormalizedResult(BaseModel):
    title: str
    link: str = "#"
    snippet: str = ""


class SearchResponse(BaseModel):
    cached: bool
    data: Dict[str, Any]


class NormalizedSearchResponse(BaseModel):
    query: str
    cached: bool
    results: List[NormalizedResult]


class HealthResponse(BaseModel):
    ok: bool
    ts: int


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
