"""
Search normalization for mixed Urdu/English records.

Operators type names and addresses in either script, with or without
diacritics and in either digit set. Both the record and the query are
reduced to the same canonical lowercase form and compared by substring.
"""
import dataclasses
import re
import unicodedata
from datetime import date, datetime
from typing import Any, Iterable, List, TypeVar

T = TypeVar("T")

# ZWNJ, ZWJ, LRM, RLM, ALM, embeddings/overrides, isolates
_BIDI_CONTROLS = re.compile("[\u200c\u200d\u200e\u200f\u061c\u202a-\u202e\u2066-\u2069]")

# harakat, Quranic marks, superscript alef, plus tatweel
_ARABIC_MARKS = re.compile(
    "[\u0610-\u061a\u064b-\u065f\u0670\u06d6-\u06dc\u06df-\u06e8\u06ea-\u06ed\u0640]"
)

_LETTER_VARIANTS = str.maketrans(
    {
        "\u064a": "\u06cc",  # ي -> ی
        "\u0649": "\u06cc",  # ى -> ی
        "\u0643": "\u06a9",  # ك -> ک
    }
)

_DIGITS = str.maketrans(
    {
        **{chr(0x0660 + i): str(i) for i in range(10)},  # ٠-٩
        **{chr(0x06F0 + i): str(i) for i in range(10)},  # ۰-۹
    }
)

_WHITESPACE = re.compile(r"\s+")


def _normalize_once(text: str) -> str:
    text = _BIDI_CONTROLS.sub("", text)
    text = _ARABIC_MARKS.sub("", text)
    text = text.translate(_LETTER_VARIANTS)
    text = text.translate(_DIGITS)
    text = unicodedata.normalize("NFKC", text.lower())
    return _WHITESPACE.sub(" ", text).strip()


def normalize_text(text: str) -> str:
    """
    Canonical search form of ``text``.

    Stripping a control or mark can bring a base letter next to a combining
    mark, and NFKC can expand into marks or controls, so the steps repeat
    until the text stops changing.
    """
    text = text or ""
    while True:
        normalized = _normalize_once(text)
        if normalized == text:
            return normalized
        text = normalized


def flatten(value: Any) -> List[str]:
    """Leaf strings of any nested value; mapping keys are ignored."""
    if value is None:
        return []
    if isinstance(value, (datetime, date)):
        return [value.isoformat()]
    if isinstance(value, str):
        return [value]
    if isinstance(value, float) and value.is_integer():
        return [str(int(value))]
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return flatten([getattr(value, f.name) for f in dataclasses.fields(value)])
    if isinstance(value, dict):
        return flatten(list(value.values()))
    if isinstance(value, (list, tuple, set, frozenset)):
        leaves: List[str] = []
        for v in value:
            leaves.extend(flatten(v))
        return leaves
    return [str(value)]


def searchable_text(value: Any) -> str:
    return normalize_text(" ".join(flatten(value)))


def matches(query: str, value: Any) -> bool:
    needle = normalize_text(query)
    if not needle:
        return True
    return needle in searchable_text(value)


def filter_records(records: Iterable[T], query: str) -> List[T]:
    """Records containing ``query``, in their original order."""
    needle = normalize_text(query)
    if not needle:
        return list(records)
    return [r for r in records if needle in searchable_text(r)]
