"""
Per-field pattern matchers for receipt lines.

Each extractor scans the normalized lines and returns at most one
FieldCandidate. Total and tax are confidence-ranked across every line;
subtotal and date take the first match in reading order.
"""

import re
from typing import List, Optional
from .money import parse_amount
from .trace import Tracer, NULL_TRACER
from ..receipt_types import FieldCandidate

_AMOUNT = r"\$?\s*(?P<amount>\d[\d,]*(?:\.\d+)?)"
_AMOUNT_2DP_EOL = r"[\s:$]*(?P<amount>\d[\d,]*\.\d{2})\s*$"

TOTAL_PATTERNS = [
    # Standard labels
    re.compile(r"(?:^|\s)(?:grand\s*total|final\s*total|amount\s*due|balance\s*due|total)[\s:]*" + _AMOUNT, re.I),
    # OCR misreads of "TOTAL"
    re.compile(r"(?:^|\s)(?:t0tal|t0t4l|t07al|t074l|7otal|tota1|70tal)[\s:]*" + _AMOUNT, re.I),
    # Abbreviations and near-misses
    re.compile(r"(?:^|\s)(?:tot|ttl|toial|tolal)[\s:]*" + _AMOUNT, re.I),
    # Amount at the end of a total-ish line
    re.compile(r"\b(?:total|grand|amount|due)" + _AMOUNT_2DP_EOL, re.I),
]

SUBTOTAL_LABEL = re.compile(r"\bsub[\s\-]*total\b", re.I)

SUBTOTAL_PATTERNS = [
    re.compile(r"(?:^|\s)(?:subtotal|sub\s*total|sub-total)[\s:]*" + _AMOUNT, re.I),
    re.compile(r"(?:^|\s)(?:subtot|sub)[\s:]*" + _AMOUNT, re.I),
]

# An amount directly followed by "%" is a rate, not a tax amount
_TAX_AMOUNT = r"\$?\s*(?P<amount>\d[\d,]*(?:\.\d+)?)(?![\d.]*%)"

TAX_PATTERNS = [
    # Explicit rate then amount: "TAX 8.25% 1.65", "GST @ 5% 2.00"
    re.compile(
        r"(?:tax|hst|gst|pst|vat)\s*(?:@\s*)?(?P<rate>\d+(?:\.\d+)?)\s*%[\s:]*\$?\s*(?P<amount>\d[\d,]*(?:\.\d+)?)",
        re.I,
    ),
    re.compile(r"(?:^|\s)(?:sales\s*tax|tax|hst|gst|pst|vat)[\s:]*" + _TAX_AMOUNT, re.I),
    # OCR misreads of "TAX"
    re.compile(r"(?:^|\s)(?:1ax|7ax|iax)[\s:]*" + _TAX_AMOUNT, re.I),
    re.compile(r"\b(?:tax|hst|gst|pst|vat)" + _AMOUNT_2DP_EOL, re.I),
]

DATE_PATTERNS = [
    # MM/DD/YYYY, DD/MM/YY, 03-15-2024, 15.03.24
    re.compile(r"(?<!\d)[0-3]?\d[/\-.][0-3]?\d[/\-.](?:20\d{2}|\d{2})(?!\d)"),
    # March 15, 2024
    re.compile(r"\b(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?\s+[0-3]?\d,?\s+20\d{2}\b", re.I),
    # 2024-03-15
    re.compile(r"(?<!\d)20\d{2}[/\-.][0-1]?\d[/\-.][0-3]?\d(?!\d)"),
]

METADATA_PATTERNS = [
    re.compile(r"^tel:?\s*\(?\d{3}\)?[\s\-.]?\d{3}[\s\-.]?\d{4}", re.I),          # Phone numbers
    re.compile(r"^(?:phone|ph)[\s:.#]*\(?\d{3}", re.I),
    re.compile(r"^\(?\d{3}\)?[\s\-.]?\d{3}[\s\-.]\d{4}\b"),
    re.compile(r"^www\.|^https?:|\.com\b|\.ca\b|\.org\b|\.net\b", re.I),           # URLs
    re.compile(
        r"^\d+\s+[a-z]+\.?\s+(?:st|ave|rd|blvd|dr|ln|hwy|street|avenue|road|boulevard|drive|lane|highway)\b",
        re.I,
    ),                                                                              # Street addresses
    re.compile(
        r"^(?:monday|tuesday|wednesday|thursday|friday|saturday|sunday|mon|tue|tues|wed|thu|thur|thurs|fri|sat|sun)\b",
        re.I,
    ),                                                                              # Day-of-week headers
    re.compile(r"^(?:hours|open|closed|manager|cashier|server|clerk)\b", re.I),      # Store info
    re.compile(r"receipt\s*#|transaction\s*#|store\s*#|order\s*#|invoice\s*#", re.I),
    re.compile(r"^(?:sales\s+|tax\s+|customer\s+)?(?:receipt|invoice)\b", re.I),   # Boilerplate titles
]

BUSINESS_SUFFIX = re.compile(
    r"\b(?:inc|llc|ltd|corp|co|company|store|stores|shop|market|mart|restaurant|cafe|bar|diner|grill|pharmacy|bakery)\b",
    re.I,
)


def _clamp(confidence: int) -> int:
    return max(0, min(100, confidence))


def is_metadata_line(line: str) -> bool:
    return any(p.search(line) for p in METADATA_PATTERNS)


def clean_merchant_name(line: str) -> str:
    name = re.sub(r"[|\[\]{}]", "", line)
    name = re.sub(r"[£€¢]", "$", name)
    name = re.sub(r"\s+", " ", name)
    name = re.sub(r"^[^a-zA-Z]+", "", name)
    name = re.sub(r"[^a-zA-Z0-9\s&'\-]+$", "", name)
    return name.strip()


def merchant_confidence(name: str) -> int:
    confidence = 50
    if BUSINESS_SUFFIX.search(name):
        confidence += 20
    if re.search(r"\d", name):
        confidence -= 10
    if len(name) < 5 or len(name) > 30:
        confidence -= 10
    return _clamp(confidence)


def total_confidence(line: str, amount: float) -> int:
    confidence = 40
    if re.search(r"\btotal\b", line, re.I):
        confidence += 30
    if re.search(r"\bgrand\s*total\b", line, re.I):
        confidence += 40
    if re.search(r"\bamount\s*due\b", line, re.I):
        confidence += 25
    if re.search(r"\bbalance\s*due\b", line, re.I):
        confidence += 25
    if 1 <= amount <= 1000:
        confidence += 20
    if amount > 1000:
        confidence -= 10
    if "$" in line:
        confidence += 10
    return _clamp(confidence)


def tax_confidence(line: str, tax: float, total: float) -> int:
    confidence = 40
    if re.search(r"\btax\b", line, re.I):
        confidence += 30
    if re.search(r"\bsales\s*tax\b", line, re.I):
        confidence += 35
    if re.search(r"\b(?:hst|gst|pst|vat)\b", line, re.I):
        confidence += 40
    if total > tax > 0:
        implied_rate = tax / (total - tax) * 100
        if 3 <= implied_rate <= 20:
            confidence += 20
        if 5 <= implied_rate <= 15:
            confidence += 10
    return _clamp(confidence)


def extract_merchant_name(
    lines: List[str],
    scan_lines: int = 8,
    tracer: Optional[Tracer] = None,
) -> Optional[FieldCandidate]:
    """
    Find the merchant name in the receipt header.

    The first header line that is not metadata (phone, URL, address,
    opening hours, receipt boilerplate) and cleans up to 3-40 characters
    is taken as the name.
    """
    tracer = tracer or NULL_TRACER

    for index, line in enumerate(lines[:scan_lines]):
        if is_metadata_line(line):
            tracer.emit("merchant", "Skipped metadata line", line_index=index)
            continue

        name = clean_merchant_name(line)
        if 3 <= len(name) <= 40:
            confidence = merchant_confidence(name)
            tracer.emit("merchant", "Merchant name accepted", line_index=index, value=name, confidence=confidence)
            return FieldCandidate(value=name, confidence=confidence, source_line=index)

        tracer.emit("merchant", "Rejected merchant candidate", line_index=index, value=name)

    return None


def extract_total(lines: List[str], tracer: Optional[Tracer] = None) -> Optional[FieldCandidate]:
    """
    Find the receipt total, ranked by confidence across every line.

    Subtotal labels are masked before matching so "SUBTOTAL 10.00" never
    competes with the real total.
    """
    tracer = tracer or NULL_TRACER
    best: Optional[FieldCandidate] = None

    for index, line in enumerate(lines):
        masked = SUBTOTAL_LABEL.sub(" ", line)
        for pattern in TOTAL_PATTERNS:
            match = pattern.search(masked)
            if not match:
                continue
            amount = parse_amount(match.group("amount"))
            if amount is None or not 0 < amount < 10000:
                tracer.emit("total", "Total amount out of range", line_index=index, amount=amount)
                continue

            confidence = total_confidence(masked, amount)
            if best is None or confidence > best.confidence:
                best = FieldCandidate(value=amount, confidence=confidence, source_line=index)
                tracer.emit("total", "Total candidate accepted", line_index=index, amount=amount, confidence=confidence)

    return best


def extract_subtotal(
    lines: List[str],
    total: float,
    tracer: Optional[Tracer] = None,
) -> Optional[FieldCandidate]:
    """First subtotal in reading order that does not exceed the total"""
    tracer = tracer or NULL_TRACER

    for index, line in enumerate(lines):
        for pattern in SUBTOTAL_PATTERNS:
            match = pattern.search(line)
            if not match:
                continue
            amount = parse_amount(match.group("amount"))
            if amount is not None and 0 < amount <= total:
                tracer.emit("subtotal", "Subtotal found", line_index=index, amount=amount)
                return FieldCandidate(value=amount, confidence=100, source_line=index)
            tracer.emit("subtotal", "Subtotal rejected", line_index=index, amount=amount, total=total)

    return None


def extract_tax(
    lines: List[str],
    total: float,
    tracer: Optional[Tracer] = None,
) -> Optional[FieldCandidate]:
    """
    Find the tax amount, ranked by confidence.

    The tax must be strictly below the total; confidence rewards explicit
    tax labels and an implied rate in the usual 3-20% band.
    """
    tracer = tracer or NULL_TRACER
    best: Optional[FieldCandidate] = None

    for index, line in enumerate(lines):
        for pattern in TAX_PATTERNS:
            match = pattern.search(line)
            if not match:
                continue
            amount = parse_amount(match.group("amount"))
            if amount is None or not 0 < amount < total:
                tracer.emit("tax", "Tax amount rejected", line_index=index, amount=amount, total=total)
                continue

            confidence = tax_confidence(line, amount, total)
            if best is None or confidence > best.confidence:
                best = FieldCandidate(value=amount, confidence=confidence, source_line=index)
                tracer.emit("tax", "Tax candidate accepted", line_index=index, amount=amount, confidence=confidence)

    return best


def extract_date(lines: List[str], tracer: Optional[Tracer] = None) -> Optional[FieldCandidate]:
    """First date-looking substring, returned verbatim"""
    tracer = tracer or NULL_TRACER

    for index, line in enumerate(lines):
        for pattern in DATE_PATTERNS:
            match = pattern.search(line)
            if match:
                tracer.emit("date", "Date found", line_index=index, value=match.group(0))
                return FieldCandidate(value=match.group(0), confidence=100, source_line=index)

    return None
