"""Reshape loosely structured generator output into a ResearchResult.

Upstream prompt/schema versions report the comparison in three shapes:

* ``papers``: a list of paper records, each with a key and either a list of
  ``{"aspect", "value"}`` entries or a flat set of named fields;
* flat rows: ``comparisonTable`` rows that each describe one paper
  (``paper``, ``methodology``, ``dataset``, ``keyFinding``);
* aspect rows: ``comparisonTable`` rows that each describe one aspect, keyed
  by the entries of ``paperKeys``.

Each shape has its own adapter producing a list of papers; one table builder
turns those into rectangular rows.
"""

import json
import logging
import re
from typing import Any

from baseline.errors import MalformedResponseError, ValidationError
from baseline.models import ASPECT_KEY, NOT_AVAILABLE, ResearchResult

log = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)
_SPAN = re.compile(r"\{.*\}", re.DOTALL)
_CAMEL_BOUNDARY = re.compile(r"([A-Z])")

_PAPER_KEY_FIELDS = ("key", "name", "paper", "title")
_ENTRY_LIST_FIELDS = ("comparison", "aspects", "entries")


def _loads_object(text: str) -> dict[str, Any] | None:
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None


def extract_json(text: str) -> dict[str, Any]:
    """Leniently pull the first JSON object out of generator text.

    Order: the whole text, fenced code blocks, the outermost bare ``{...}``
    span, then each ``{`` in turn until an object decodes.
    """
    text = text.strip()
    obj = _loads_object(text)
    if obj is not None:
        return obj
    for m in _FENCE.finditer(text):
        obj = _loads_object(m.group(1).strip())
        if obj is not None:
            log.info("Recovered JSON from fenced block")
            return obj
    m = _SPAN.search(text)
    if m:
        obj = _loads_object(m.group())
        if obj is not None:
            log.info("Recovered JSON from bare object span")
            return obj
        decoder = json.JSONDecoder()
        start = m.start()
        while start != -1:
            try:
                value, _end = decoder.raw_decode(text, start)
            except json.JSONDecodeError:
                value = None
            if isinstance(value, dict):
                log.info("Recovered JSON object at offset %d", start)
                return value
            start = text.find("{", start + 1)
    log.warning("Could not parse JSON from generator output: %s", text[:200])
    raise MalformedResponseError()


def humanize(field: str) -> str:
    """``keyFinding`` -> ``Key Finding``."""
    spaced = _CAMEL_BOUNDARY.sub(r" \1", field).strip()
    return spaced[:1].upper() + spaced[1:]


def _cell(value: Any) -> str:
    if value is None:
        return NOT_AVAILABLE
    if isinstance(value, str):
        return value if value.strip() else NOT_AVAILABLE
    if isinstance(value, list):
        return ", ".join(_cell(v) for v in value) or NOT_AVAILABLE
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _aspect_name(value: Any) -> str | None:
    if value is None or not str(value).strip():
        return None
    return str(value).strip()


class _Paper:
    """One table column: a key plus its values by aspect, first report wins."""

    def __init__(self, key: str):
        self.key = key
        self.values: dict[str, str] = {}

    def add(self, aspect: Any, value: Any) -> None:
        name = _aspect_name(aspect)
        if name is None:
            log.warning("Skipping comparison entry without an aspect for '%s'", self.key)
            return
        self.values.setdefault(name, _cell(value))


def _require_list(name: str, value: Any) -> list:
    if not isinstance(value, list):
        raise ValidationError(f"'{name}' must be a list, got {type(value).__name__}")
    return value


def _paper_key(record: dict[str, Any], index: int) -> str:
    for field in _PAPER_KEY_FIELDS:
        value = record.get(field)
        if value is not None and str(value).strip():
            return str(value).strip()
    return f"Paper {index + 1}"


def _paper_from_record(record: dict[str, Any], index: int) -> _Paper:
    paper = _Paper(_paper_key(record, index))
    for field in _ENTRY_LIST_FIELDS:
        if field in record:
            entries = record[field]
            for entry in [] if entries is None else _require_list(field, entries):
                if isinstance(entry, dict):
                    paper.add(entry.get(ASPECT_KEY), entry.get("value"))
                else:
                    log.warning("Skipping non-object comparison entry for '%s'", paper.key)
            return paper
    # Flat variant: every field other than the identifying ones is an aspect.
    for field, value in record.items():
        if field in _PAPER_KEY_FIELDS:
            continue
        paper.add(humanize(field), value)
    return paper


def _papers_from_records(records: list) -> list[_Paper]:
    papers = []
    for i, record in enumerate(records):
        if not isinstance(record, dict):
            log.warning("Skipping non-object paper record at index %d", i)
            continue
        papers.append(_paper_from_record(record, i))
    return papers


def _papers_from_aspect_rows(rows: list[dict[str, Any]], paper_keys: list[str]) -> list[_Paper]:
    keys = list(dict.fromkeys(k for k in paper_keys if k != ASPECT_KEY))
    papers = [_Paper(k) for k in keys]
    for row in rows:
        aspect = row.get(ASPECT_KEY)
        for paper in papers:
            if paper.key in row:
                paper.add(aspect, row[paper.key])
    return papers


def _infer_paper_keys(rows: list[dict[str, Any]]) -> list[str]:
    return list(dict.fromkeys(k for row in rows for k in row if k != ASPECT_KEY))


def _collect_papers(payload: dict[str, Any]) -> tuple[list[_Paper], list[str]]:
    """Pick the adapter for the payload's shape.

    Returns the papers plus the aspect order stated by the payload itself
    (row order for aspect rows, nothing for the per-paper shapes).
    """
    if payload.get("papers") is not None:
        log.debug("Comparison shape: paper records")
        return _papers_from_records(_require_list("papers", payload["papers"])), []

    table = payload.get("comparisonTable")
    if table is None:
        return [], []
    rows = []
    for i, row in enumerate(_require_list("comparisonTable", table)):
        if isinstance(row, dict):
            rows.append(row)
        else:
            log.warning("Skipping non-object comparisonTable row at index %d", i)

    paper_keys = payload.get("paperKeys")
    if paper_keys is not None or any(ASPECT_KEY in row for row in rows):
        log.debug("Comparison shape: aspect rows")
        if paper_keys is None:
            keys = _infer_paper_keys(rows)
        else:
            keys = [str(k) for k in _require_list("paperKeys", paper_keys)]
        row_aspects = [a for a in (_aspect_name(row.get(ASPECT_KEY)) for row in rows) if a]
        return _papers_from_aspect_rows(rows, keys), row_aspects

    log.debug("Comparison shape: flat rows")
    return _papers_from_records(rows), []


def _unique_keys(raw_keys: list[str]) -> list[str]:
    seen: set[str] = set()
    keys = []
    for raw in raw_keys:
        candidate, n = raw, 2
        while candidate in seen or candidate == ASPECT_KEY:
            candidate = f"{raw} ({n})"
            n += 1
        seen.add(candidate)
        keys.append(candidate)
    return keys


def build_table(
    papers: list[_Paper], aspect_order: list[str] | None = None
) -> tuple[list[str], list[dict[str, str]]]:
    """Build (paper_keys, rows): one row per aspect, one column per paper.

    Aspects are ``aspect_order`` followed by the union over all papers in
    order of first occurrence; a paper that did not report an aspect gets
    ``N/A`` in that row.
    """
    keys = _unique_keys([p.key for p in papers])
    aspects = list(dict.fromkeys((aspect_order or []) + [a for p in papers for a in p.values]))
    rows = []
    for aspect in aspects:
        row = {ASPECT_KEY: aspect}
        for key, paper in zip(keys, papers):
            row[key] = paper.values.get(aspect, NOT_AVAILABLE)
        rows.append(row)
    return keys, rows


def _require_str(payload: dict[str, Any], field: str) -> str:
    if field not in payload or payload[field] is None:
        raise ValidationError(f"'{field}' is missing from the research result.")
    value = payload[field]
    if not isinstance(value, str):
        raise ValidationError(f"'{field}' must be a string, got {type(value).__name__}.")
    return value


def normalize_result(raw: Any) -> ResearchResult:
    """Turn generator output (text or parsed JSON) into a ResearchResult.

    Raises MalformedResponseError when no JSON object can be recovered and
    ValidationError when the brief or notebook code is absent or not a string.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    payload = extract_json(raw) if isinstance(raw, str) else raw
    if not isinstance(payload, dict):
        raise MalformedResponseError()

    brief = _require_str(payload, "researchBrief")
    code = _require_str(payload, "notebookCode")
    papers, aspect_order = _collect_papers(payload)
    keys, rows = build_table(papers, aspect_order)
    log.info("Normalized comparison: %d papers x %d aspects", len(keys), len(rows))
    return ResearchResult(
        research_brief=brief,
        comparison_table=rows,
        paper_keys=keys,
        notebook_code=code,
    )
