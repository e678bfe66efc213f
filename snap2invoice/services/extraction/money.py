"""
Currency-amount scanning shared by the extraction stages.

OCR output is scanned with several overlapping regexes; the same printed
price is frequently hit by more than one of them, so matches are merged by
character span and each printed amount is reported once.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern

# Every pattern exposes the printed amount as group "amount".
ITEM_MONEY_PATTERNS: List[Pattern] = [
    re.compile(r"\$\s*(?P<amount>\d[\d,]*\.\d{2})"),                 # $XX.XX
    re.compile(r"\b(?P<amount>\d[\d,]*\.\d{2})\b"),                  # XX.XX
    re.compile(r"(?P<amount>\d+\.\d{2})\s*[A-Z<]"),                  # price followed by letters/markers
    re.compile(r"(?P<amount>\d+\.\d{2})\s*$"),                       # price at end of line
    re.compile(r"\$(?P<amount>\d[\d,]*)\s"),                         # $XX (dollars only)
]

FALLBACK_MONEY_PATTERNS: List[Pattern] = [
    re.compile(r"\$\s*(?P<amount>\d[\d,]*\.\d{2})"),
    re.compile(r"(?<![\d.])(?P<amount>\d[\d,]*\.\d{2})(?![\d.])"),
    re.compile(r"(?<![\d.])(?P<amount>\d{1,4}\s*\.\s*\d{2})(?![\d.])"),  # "12 . 50"
    re.compile(r"[£€¢]\s*(?P<amount>\d[\d,]*\.\d{2})"),                # misread $ sign
]


@dataclass(frozen=True)
class AmountToken:
    """A printed amount located in a piece of text"""

    value: float
    start: int  # Includes a leading currency sign when the pattern has one
    end: int    # End of the amount itself
    text: str   # Printed price, e.g. "$8.00"


def parse_amount(raw: str) -> Optional[float]:
    """
    Convert a printed amount ("$1,234.56", "12 . 50", "€3.10") to a float.

    Returns None when the text is not a number.
    """
    cleaned = re.sub(r"[\s,$£€¢]", "", raw or "")
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def find_amounts(text: str, patterns: Iterable[Pattern]) -> List[AmountToken]:
    """
    Collect every amount matched by any of the patterns, one token per printed amount.

    Patterns are applied in order; a match whose amount overlaps an amount
    already claimed by an earlier pattern is dropped.

    Returns:
        Tokens ordered by position in the text
    """
    tokens: List[AmountToken] = []
    claimed: List[tuple] = []

    for pattern in patterns:
        for match in pattern.finditer(text):
            a_start, a_end = match.span("amount")
            if any(a_start < c_end and c_start < a_end for c_start, c_end in claimed):
                continue
            value = parse_amount(match.group("amount"))
            if value is None:
                continue
            claimed.append((a_start, a_end))
            tokens.append(
                AmountToken(
                    value=value,
                    start=match.start(),
                    end=a_end,
                    text=text[match.start():a_end],
                )
            )

    tokens.sort(key=lambda t: t.start)
    return tokens


def same_amount(a: float, b: float) -> bool:
    return abs(a - b) < 0.01
