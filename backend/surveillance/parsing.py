import math
import re

NA_SENTINEL = "NA"

# plain decimal notation only: no "_" separators, no "inf"/"nan" words
DECIMAL_RE = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")


def parse_locale_number(raw):
    """
    Parse a French-locale number ("12,5") into a float.

    Returns None for None, blank strings, the "NA" sentinel and anything
    that doesn't parse to a finite float.
    """
    if raw is None:
        return None
    text = str(raw).strip()
    if text == "" or text == NA_SENTINEL:
        return None
    text = text.replace(",", ".", 1)
    if not DECIMAL_RE.fullmatch(text):
        return None
    value = float(text)
    if not math.isfinite(value):
        return None
    return value


def normalize_week(raw: str) -> str:
    """
    "2024-S03" -> "2024-W03". Only the first "-S" is replaced;
    anything else passes through unchanged.
    """
    return raw.replace("-S", "-W", 1)


def finite_number(raw):
    """Native JSON numbers only: strings, bools and NaN/inf become None."""
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    if not math.isfinite(raw):
        return None
    return raw


def strip_quotes(raw: str) -> str:
    return raw.strip("'\"")


def parse_int(raw, default: int = 0) -> int:
    # leading-digits semantics: "1200 hab." -> 1200
    if raw is None:
        return default
    text = str(raw).strip()
    digits = ""
    for i, ch in enumerate(text):
        if ch.isdigit() or (i == 0 and ch in "+-"):
            digits += ch
        else:
            break
    try:
        return int(digits)
    except ValueError:
        return default


def round_half_up(value):
    if value is None:
        return None
    return int(math.floor(value + 0.5))
