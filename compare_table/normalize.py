"""
Comparison table normalization.

Turns the loosely typed payload of the upstream "compare" service into a
table with one Factor column plus one column per compared subject.

Pipeline:
- sanitize every cell to a trimmed string or the sentinel
- resolve headers (declared columns, items, query labels, defaults)
- normalize rows to {label, values} padded to the column count
- fold every "When to Choose" row into a single trailing row
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from .models import NormalizedRow, NormalizedTable
from .rules import (
    CHOICE_TEMPLATE,
    DEFAULT_OPTIONS,
    DEFAULT_SUBJECT_COUNT,
    FACTOR_LABEL,
    SENTINEL,
    WHEN_TO_CHOOSE,
    COMPARISON_SEPARATORS,
    forced_column_index,
    is_placeholder_header,
    is_when_to_choose_label,
)

logger = logging.getLogger(__name__)

NO_COMPARISON_MESSAGE = "No structured comparison available."


def sanitize_cell(value: Any, fallback: str = SENTINEL) -> str:
    """Trimmed display text for any JSON value; `fallback` for null or blank."""
    if value is None:
        return fallback
    if isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, float) and value.is_integer():
        text = str(int(value))
    elif isinstance(value, (list, tuple, dict)):
        text = json.dumps(value, ensure_ascii=False, skipkeys=True, default=str, separators=(",", ":"))
    else:
        text = str(value)
    text = text.strip()
    return text if text else fallback


def extract_comparison_labels(query: Any) -> List[str]:
    """
    Split a free-text query into at most two subject labels.

    "iPhone 15 vs Samsung Galaxy S25+" -> ["iPhone 15", "Samsung Galaxy S25+"]
    """
    if not query:
        return []
    normalized = " ".join(str(query).split())
    if not normalized:
        return []
    parts = [part.strip() for part in COMPARISON_SEPARATORS.split(normalized)]
    return [part for part in parts if part][:2]


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _fallback_options(items: Any, query_labels: Sequence[str]) -> List[str]:
    options = [text for text in (sanitize_cell(item) for item in _as_list(items)) if text != SENTINEL]
    if not options:
        options = [sanitize_cell(label) for label in query_labels]
    if not options:
        options = list(DEFAULT_OPTIONS)
    return options


def resolve_columns(
    declared_columns: Any,
    items: Any,
    query_labels: Sequence[str],
    subject_count: int = DEFAULT_SUBJECT_COUNT,
    warnings: Optional[list] = None,
) -> List[str]:
    """
    Final header row: "Factor" followed by one header per compared subject.

    Rules:
    - fallback subject names come from items, else the query labels, else
      "Item 1"/"Item 2"
    - declared columns are used when present, otherwise synthesized
    - short header rows are padded to 1 + subject_count
    - placeholder headers ("Option A", "2", ...) and blank headers take the
      fallback name for their slot; blank headers without one become
      "Choice N"
    """
    options = _fallback_options(items, query_labels)

    declared = _as_list(declared_columns)
    if declared:
        raw_columns = [sanitize_cell(column) for column in declared]
    else:
        raw_columns = [FACTOR_LABEL, *options[:subject_count]]
    while len(raw_columns) < 1 + subject_count:
        raw_columns.append(SENTINEL)

    columns: List[str] = [FACTOR_LABEL]
    for index, header in enumerate(raw_columns[1:], start=1):
        replacement = options[index - 1] if index - 1 < len(options) else None
        if replacement is None:
            columns.append(CHOICE_TEMPLATE.format(index=index) if header == SENTINEL else header)
        elif header == SENTINEL or is_placeholder_header(header):
            columns.append(replacement)
        else:
            columns.append(header)

    if len(columns) - 1 > subject_count:
        logger.warning(
            "Upstream declared %d subjects, expected %d; keeping extra columns",
            len(columns) - 1,
            subject_count,
        )
        if warnings is not None:
            warnings.append({
                "row": None,
                "column": None,
                "issue": "subject_count_exceeded",
                "value": str(len(columns) - 1),
                "action": f"expected_{subject_count}",
            })

    return columns


def expected_value_count(columns: Sequence[str]) -> int:
    return max(1, len(columns) - 1)


def _first_present(row: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = row.get(key)
        if value is not None:
            return value
    return None


def normalize_row(
    row: Any,
    value_count: int,
    position: Optional[int] = None,
    warnings: Optional[list] = None,
) -> Optional[NormalizedRow]:
    """Canonical {label, values} for one raw row, or None for an empty row."""
    if not isinstance(row, dict):
        row = {}

    original_label = _first_present(row, "label", "key")
    if original_label is None:
        original_label = ""
    label = sanitize_cell(original_label)

    forced_index = None
    if is_when_to_choose_label(label):
        label = WHEN_TO_CHOOSE
        forced_index = forced_column_index(original_label)

    raw_values = row.get("values")
    if not isinstance(raw_values, list) or not raw_values:
        raw_values = [_first_present(row, "A", "a"), _first_present(row, "B", "b")]

    values = [sanitize_cell(value) for value in raw_values][:value_count]
    values.extend([SENTINEL] * (value_count - len(values)))

    if forced_index is not None and forced_index < value_count:
        present = [value for value in values if value != SENTINEL]
        if len(present) == 1:
            adjusted = [SENTINEL] * value_count
            adjusted[forced_index] = present[0]
            if adjusted != values:
                logger.debug("Moved value of %r into column %d", original_label, forced_index)
                if warnings is not None:
                    warnings.append({
                        "row": position,
                        "column": forced_index,
                        "issue": "value_relocated",
                        "value": present[0],
                        "action": f"moved_to_column_{forced_index}",
                    })
            values = adjusted

    if label == SENTINEL and all(value == SENTINEL for value in values):
        logger.debug("Dropped empty row at position %s", position)
        if warnings is not None:
            warnings.append({
                "row": position,
                "column": None,
                "issue": "row_empty",
                "value": None,
                "action": "row_dropped",
            })
        return None

    return NormalizedRow(label=label, values=values)


def normalize_rows(raw_rows: Any, value_count: int, warnings: Optional[list] = None) -> List[NormalizedRow]:
    rows = []
    for position, raw in enumerate(_as_list(raw_rows), start=1):
        row = normalize_row(raw, value_count, position=position, warnings=warnings)
        if row is not None:
            rows.append(row)
    return rows


def merge_rows(rows: Sequence[NormalizedRow], value_count: int) -> List[NormalizedRow]:
    """
    Fold every "When to Choose" row into one row appended last.

    Cells are merged column by column; when several directional rows fill the
    same column the later row wins. Other rows keep their order.
    """
    merged: List[NormalizedRow] = []
    accumulator = [SENTINEL] * value_count
    has_directional = False

    for row in rows:
        if row.label != WHEN_TO_CHOOSE:
            merged.append(row)
            continue
        for index, value in enumerate(row.values[:value_count]):
            if value != SENTINEL:
                accumulator[index] = value
                has_directional = True

    if has_directional:
        merged.append(NormalizedRow(label=WHEN_TO_CHOOSE, values=accumulator))
    return merged


def _source_rows(payload: Dict[str, Any]) -> list:
    table = payload.get("table")
    rows = table.get("rows") if isinstance(table, dict) else None
    if rows is None:
        rows = payload.get("rows")
    return _as_list(rows)


def _declared_columns(payload: Dict[str, Any]) -> Any:
    table = payload.get("table")
    return table.get("columns") if isinstance(table, dict) else None


def _normalize(payload: Any, query: Any, subject_count: int, warnings: list) -> NormalizedTable:
    if subject_count < 1:
        raise ValueError(f"subject_count must be at least 1, got {subject_count}")
    if not isinstance(payload, dict):
        return NormalizedTable(columns=[], rows=[])

    columns = resolve_columns(
        _declared_columns(payload),
        payload.get("items"),
        extract_comparison_labels(query),
        subject_count=subject_count,
        warnings=warnings,
    )
    value_count = expected_value_count(columns)
    rows = normalize_rows(_source_rows(payload), value_count, warnings=warnings)
    return NormalizedTable(columns=columns, rows=merge_rows(rows, value_count))


def normalize_comparison_table(
    payload: Any,
    query: Any,
    subject_count: int = DEFAULT_SUBJECT_COUNT,
) -> NormalizedTable:
    """
    Normalize an upstream compare payload into a renderable table.

    Never raises on malformed input; a subject_count below 1 is a ValueError.
    A missing payload gives an empty table;
    `NormalizedTable.is_empty` tells callers to fall back to free text.
    """
    return _normalize(payload, query, subject_count, warnings=[])


def _optional_text(value: Any) -> Optional[str]:
    text = sanitize_cell(value)
    return None if text == SENTINEL else text


def _highlights(payload: Dict[str, Any]) -> List[Dict[str, Optional[str]]]:
    return [
        {"item": _optional_text(entry.get("item")), "summary": _optional_text(entry.get("summary"))}
        for entry in _as_list(payload.get("highlights"))
        if isinstance(entry, dict)
    ]


def _links(payload: Dict[str, Any]) -> List[Dict[str, Optional[str]]]:
    links = []
    for entry in _as_list(payload.get("links")):
        if not isinstance(entry, dict):
            continue
        url = _optional_text(entry.get("url"))
        if url is None:
            continue
        links.append({"url": url, "label": _optional_text(entry.get("label"))})
    return links


def normalize_compare_payload(
    payload: Any,
    query: Any,
    subject_count: int = DEFAULT_SUBJECT_COUNT,
) -> Dict[str, Any]:
    """
    Normalize a compare payload and wrap it in the API envelope.
    Returns a dict matching CompareResponse.
    """
    warnings: List[Dict[str, Any]] = []
    table = _normalize(payload, query, subject_count, warnings)
    source = payload if isinstance(payload, dict) else {}

    fallback_text = None
    message = None
    if table.is_empty:
        fallback_text = _optional_text(source.get("description")) or _optional_text(source.get("summary"))
        if fallback_text is None:
            message = NO_COMPARISON_MESSAGE

    items = [text for text in (sanitize_cell(item) for item in _as_list(source.get("items"))) if text != SENTINEL]

    return {
        "table": table.model_dump(),
        "has_structured_table": not table.is_empty,
        "fallback_text": fallback_text,
        "message": message,
        "items": items,
        "highlights": _highlights(source),
        "links": _links(source),
        "report": {
            "summary": {
                "rows": len(table.rows),
                "columns": len(table.columns),
                "subjects": max(0, len(table.columns) - 1),
                "warnings": len(warnings),
            },
            "warnings": warnings,
        },
    }
