"""
Deterministic normalization rules.

Constants and the text predicates the table normalizer relies on. The label
heuristics are kept here as small named functions so each one can be tested
on its own.
"""

from __future__ import annotations

import re
from typing import Any, Optional

SENTINEL = "--"  # value unknown, never real data
FACTOR_LABEL = "Factor"
WHEN_TO_CHOOSE = "When to Choose"
DEFAULT_SUBJECT_COUNT = 2
DEFAULT_OPTIONS = ("Item 1", "Item 2")
CHOICE_TEMPLATE = "Choice {index}"

COMPARISON_SEPARATORS = re.compile(
    r"(?:\s+vs\.?\s+|\s+versus\s+|\s+against\s+|,|/|&)", re.IGNORECASE
)
PLACEHOLDER_HEADER = re.compile(r"^(?:option|choice)?\s*(?:a|b|1|2)$", re.IGNORECASE)
WHEN_TO_CHOOSE_LABEL = re.compile(r"^when to cho(?:ose|se)\b", re.IGNORECASE)
SECOND_SUBJECT_TOKEN = re.compile(r"(?:\b|_)(?:b|second|2)\b", re.IGNORECASE)
FIRST_SUBJECT_TOKEN = re.compile(r"(?:\b|_)(?:a|first|1)\b", re.IGNORECASE)


def is_placeholder_header(header: str) -> bool:
    """'Option A', 'choice 2', 'B' and friends are never real subject names."""
    return bool(PLACEHOLDER_HEADER.match(header))


def is_when_to_choose_label(label: str) -> bool:
    return bool(WHEN_TO_CHOOSE_LABEL.match(label))


def forced_column_index(original_label: Any) -> Optional[int]:
    """
    Column a directional row's value belongs in, inferred from its label.

    Only two slots are recognized. The second-subject tokens win when both
    kinds appear, so "When to choose 1 or B" lands in column 1.
    """
    if original_label is None:
        return None
    text = str(original_label)
    if SECOND_SUBJECT_TOKEN.search(text):
        return 1
    if FIRST_SUBJECT_TOKEN.search(text):
        return 0
    return None
