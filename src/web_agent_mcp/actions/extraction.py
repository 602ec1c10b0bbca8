"""
Batched, named DOM queries against the active document context.

Each query selects elements with a CSS selector, shapes the result (single
string vs. list) and trims oversized markup. Whenever fewer elements are
returned than matched, a note says so, so callers do not mistake a partial
result for the full set.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..constants import DEFAULT_MAX_RESULTS, MAX_QUERY_RESULT_CHARS
from ..frames import MAIN

import logging
logger = logging.getLogger(__name__)


EXTRACT_MODES = ("text", "innerText", "html", "outerHTML")
MARKUP_MODES = ("html", "outerHTML")


def truncation_notice(length: int) -> str:
    return (
        f"... [truncated: {length} characters total, showing first {MAX_QUERY_RESULT_CHARS}. "
        f"Set allowLargeResults to receive the full content]"
    )


@dataclass(frozen=True)
class QuerySpec:
    name: str
    selector: str
    extract: str = "text"
    index: Optional[int] = None
    max_results: Optional[int] = None
    allow_large_results: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "QuerySpec":
        """Accept the wire form (camelCase keys, legacy ``all`` flag)."""
        if not isinstance(data, dict):
            raise ValueError(f"Each query must be an object, got {type(data).__name__}")
        name = data.get("name")
        selector = data.get("selector")
        if not name or not selector:
            raise ValueError("Each query needs a non-empty 'name' and 'selector'")
        max_results = data.get("maxResults", data.get("max_results"))
        if max_results is None and data.get("all"):
            max_results = 0
        if max_results is not None and int(max_results) < 0:
            raise ValueError(f"Query {name!r}: maxResults must be >= 0, got {max_results}")
        index = data.get("index")
        return cls(
            name=str(name),
            selector=str(selector),
            extract=data.get("extract") or "text",
            index=int(index) if index is not None else None,
            max_results=int(max_results) if max_results is not None else None,
            allow_large_results=bool(data.get("allowLargeResults", data.get("allow_large_results", False))),
        )

    @property
    def mode(self) -> str:
        return self.extract if self.extract in EXTRACT_MODES else "text"

    @property
    def limit(self) -> int:
        return DEFAULT_MAX_RESULTS if self.max_results is None else self.max_results


def _shape(value: Optional[str], spec: QuerySpec) -> str:
    value = value or ""
    if spec.mode in MARKUP_MODES and not spec.allow_large_results and len(value) > MAX_QUERY_RESULT_CHARS:
        return value[:MAX_QUERY_RESULT_CHARS] + truncation_notice(len(value))
    return value


def _run_one(page, spec: QuerySpec, results: dict, metadata: dict, notes: list) -> None:
    elements = page.query_all(spec.selector)
    total = len(elements)

    if total == 0:
        results[spec.name] = [] if spec.index is None and spec.limit == 0 else None
        return

    if spec.index is not None:
        position = spec.index + total if spec.index < 0 else spec.index
        if not 0 <= position < total:
            results[spec.name] = None
            metadata[spec.name] = {"returned": 0, "total": total}
            notes.append(f"{spec.name}: index {spec.index} is out of range for {total} matches")
            return
        results[spec.name] = _shape(page.extract(elements[position], spec.mode), spec)
        metadata[spec.name] = {"returned": 1, "total": total}
    elif spec.limit == 1:
        results[spec.name] = _shape(page.extract(elements[0], spec.mode), spec)
        metadata[spec.name] = {"returned": 1, "total": total}
    else:
        chosen = elements if spec.limit == 0 else elements[:spec.limit]
        results[spec.name] = [_shape(page.extract(el, spec.mode), spec) for el in chosen]
        metadata[spec.name] = {"returned": len(chosen), "total": total}

    returned = metadata[spec.name]["returned"]
    if total > returned:
        notes.append(
            f"{spec.name}: returned {returned} of {total} matches. "
            f"Use maxResults=0 for all matches or index to pick a specific one."
        )


def run_queries(page, specs: Sequence[Any], context=MAIN) -> Dict[str, Any]:
    """
    Run ``specs`` (QuerySpec objects or their dict form) inside ``context``.

    Returns ``{"results": {name: str | list | None}, "metadata": {name:
    {"returned", "total"}}, "notes": [...]}``. Queries with zero matches get
    no metadata entry.
    """
    parsed: List[QuerySpec] = [s if isinstance(s, QuerySpec) else QuerySpec.from_dict(s) for s in specs]
    names = [spec.name for spec in parsed]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ValueError(f"Query names must be unique within a batch: {', '.join(duplicates)}")

    results: Dict[str, Any] = {}
    metadata: Dict[str, dict] = {}
    notes: List[str] = []
    with page.scoped(context):
        for spec in parsed:
            _run_one(page, spec, results, metadata, notes)
    if notes:
        logger.debug(f"Partial query results: {notes}")
    return {"results": results, "metadata": metadata, "notes": notes}
