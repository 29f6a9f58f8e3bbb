from __future__ import annotations

import traceback
from typing import Any, Iterable, List, Mapping, Sequence

SECTION_SIGN = '§'
COLOR_CODES = '0123456789AaBbCcDdEeFfKkLlMmNnOoRrXx'
_TRACE_LIMIT = 4000


def normalize_null_strings(obj: Any) -> Any:
    """Recursively convert the string 'null' (any case) to None inside dict/list structures.

    Hand-written YAML often carries ``null`` as a quoted string; treat it as absent.
    """
    if isinstance(obj, str):
        return None if obj.lower() == "null" else obj
    if isinstance(obj, Mapping):
        return {k: normalize_null_strings(v) for k, v in obj.items()}
    if isinstance(obj, Sequence) and not isinstance(obj, (str, bytes)):
        return [normalize_null_strings(v) for v in obj]
    return obj


def clean_name_list(raw: Any) -> List[str]:
    """Normalize a declared list of names, dropping blanks and placeholder nulls."""
    normalized = normalize_null_strings(raw)
    if isinstance(normalized, (list, tuple, set, frozenset)):
        items: Iterable[Any] = normalized
    elif normalized is None:
        return []
    else:
        items = (normalized,)
    cleaned: List[str] = []
    for item in items:
        if item is None:
            continue
        text = str(item).strip()
        if not text or text.lower() in {"null", "none"}:
            continue
        cleaned.append(text)
    return cleaned


def translate_color_codes(text: str, alt_char: str = '&') -> str:
    """Replace ``<alt_char><code>`` pairs with section-sign color codes.

    Only recognised color/format codes are translated; the code character is
    lower-cased. ``"&cHello"`` becomes ``"§cHello"``.
    """
    if not text or not alt_char:
        return text
    chars = list(text)
    for i in range(len(chars) - 1):
        if chars[i] == alt_char and chars[i + 1] in COLOR_CODES:
            chars[i] = SECTION_SIGN
            chars[i + 1] = chars[i + 1].lower()
    return ''.join(chars)


def format_trace(exc: BaseException | None = None) -> str:
    """Format the active (or given) exception's traceback, keeping the tail."""
    if exc is None:
        text = traceback.format_exc()
    else:
        text = ''.join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return text[-_TRACE_LIMIT:]
