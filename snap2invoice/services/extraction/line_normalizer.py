"""
Turn raw OCR text into an ordered list of receipt lines.

Some OCR engines return dense receipts as one run-on line. When that happens
the line is re-segmented with a cascade of splitting heuristics; the first
heuristic that produces more segments wins.
"""

import re
from typing import Callable, List, Optional
from .money import find_amounts
from .trace import Tracer, NULL_TRACER

# Product code (UPC/SKU) followed by an upper-case product name
_PRODUCT_CODE_SPLIT = re.compile(r"\s+(?=\d{8,}\s+[A-Z])")
# "... 12.99 NEXT ITEM ..." -> split after the price
_AFTER_PRICE_SPLIT = re.compile(r"(?<=\d\.\d{2})\s+(?=[A-Za-z])")
# "... ITEM 12.99 NEXT ..." -> split before a price that is followed by text
_BEFORE_PRICE_SPLIT = re.compile(r"\s+(?=\$?\d+\.\d{2}\s+[A-Za-z])")
# Wide column gap after a price
_WIDE_GAP_SPLIT = re.compile(r"(?<=\d\.\d{2})\s{3,}(?=\w)")

_FORCE_PRICE_PATTERNS = [re.compile(r"(?:\$\s*)?(?P<amount>\d+\.\d{2})\b")]


def _clean(segments: List[str]) -> List[str]:
    return [s.strip() for s in segments if s and s.strip()]


def _regex_splitter(pattern) -> Callable[[str], List[str]]:
    def split(line: str) -> List[str]:
        return _clean(pattern.split(line))
    return split


def split_on_prices(line: str) -> List[str]:
    """
    Last-resort segmentation: cut the line at every printed price.

    Produces the text before the first price, then one segment per price
    running up to the next price.
    """
    tokens = find_amounts(line, _FORCE_PRICE_PATTERNS)
    if not tokens:
        return [line]

    segments = [line[:tokens[0].start]]
    for i, token in enumerate(tokens):
        next_start = tokens[i + 1].start if i + 1 < len(tokens) else len(line)
        segments.append(line[token.start:next_start])
    return _clean(segments)


SPLIT_STRATEGIES = [
    ("product_code", _regex_splitter(_PRODUCT_CODE_SPLIT)),
    ("after_price", _regex_splitter(_AFTER_PRICE_SPLIT)),
    ("before_price", _regex_splitter(_BEFORE_PRICE_SPLIT)),
    ("wide_gap", _regex_splitter(_WIDE_GAP_SPLIT)),
    ("price_scan", split_on_prices),
]


def normalize_lines(
    raw_text: str,
    single_line_threshold: int = 100,
    tracer: Optional[Tracer] = None,
) -> List[str]:
    """
    Split raw OCR text into trimmed, non-empty lines.

    Args:
        raw_text: OCR transcription of one receipt
        single_line_threshold: A lone line longer than this is treated as
            a run-on transcription and re-segmented
        tracer: Receives the chosen split strategy

    Returns:
        Lines in reading order (empty only when the text is blank)
    """
    tracer = tracer or NULL_TRACER
    lines = _clean(raw_text.split("\n"))

    if len(lines) != 1 or len(lines[0]) <= single_line_threshold:
        tracer.emit("normalize", "Split on newlines", line_count=len(lines))
        return lines

    single_line = lines[0]
    tracer.emit("normalize", "Run-on line detected", length=len(single_line))

    for name, splitter in SPLIT_STRATEGIES:
        segments = splitter(single_line)
        if len(segments) > len(lines):
            tracer.emit("normalize", "Run-on line split", strategy=name, line_count=len(segments))
            return segments

    tracer.emit("normalize", "No split strategy improved the line", line_count=1)
    return lines
