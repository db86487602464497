"""
Best-effort mapping of provider payloads to uniform result records.

Providers disagree on where the result list lives and on what the fields of
each hit are called. ``NormalizerRules`` holds the ordered candidates for
both; the first match wins.
"""
from dataclasses import dataclass, replace
from typing import Any, List, Optional, Sequence, Tuple

from .models import NormalizedResult

MAX_RESULTS = 20
DEFAULT_LINK = "#"


@dataclass(frozen=True)
class NormalizerRules:
    list_fields: Tuple[str, ...] = ("items", "organic_results", "results", "organic")
    title_fields: Tuple[str, ...] = ("title", "name", "headline", "title_no_formatting")
    link_fields: Tuple[str, ...] = ("link", "url", "destination", "source")
    snippet_fields: Tuple[str, ...] = ("snippet", "description", "snippet_text")
    max_results: int = MAX_RESULTS
    default_link: str = DEFAULT_LINK

    def extend(self, **extra: Sequence[str]) -> "NormalizerRules":
        """Return a copy with provider-specific candidates tried first,
        e.g. ``rules.extend(title_fields=["heading"])``."""
        changes = {}
        for name, fields in extra.items():
            current = getattr(self, name)
            changes[name] = tuple(fields) + tuple(f for f in current if f not in fields)
        return replace(self, **changes)


DEFAULT_RULES = NormalizerRules()


def _first_value(item: dict, fields: Sequence[str]) -> Optional[str]:
    for f in fields:
        v = item.get(f)
        if v:
            return v if isinstance(v, str) else str(v)
    return None


class Normalizer:
    def __init__(self, rules: NormalizerRules = DEFAULT_RULES):
        self.rules = rules

    def find_items(self, payload: Any) -> List[Any]:
        if not isinstance(payload, dict):
            return []
        for f in self.rules.list_fields:
            if isinstance(payload.get(f), list):
                return payload[f]
        # unknown provider shape: first non-empty list of objects
        for v in payload.values():
            if isinstance(v, list) and v and isinstance(v[0], dict):
                return v
        return []

    def map_item(self, item: dict) -> NormalizedResult:
        r = self.rules
        return NormalizedResult(
            title=_first_value(item, r.title_fields) or "",
            link=_first_value(item, r.link_fields) or r.default_link,
            snippet=_first_value(item, r.snippet_fields) or "",
        )

    def normalize(self, payload: Any) -> List[NormalizedResult]:
        items = self.find_items(payload)[: self.rules.max_results]
        return [self.map_item(it) for it in items if isinstance(it, dict)]


def normalize(payload: Any, rules: NormalizerRules = DEFAULT_RULES) -> List[NormalizedResult]:
    return Normalizer(rules).normalize(payload)
