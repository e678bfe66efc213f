"""
Line-item extraction.

Every printed price above the total line is a candidate item; the
exclusion list is kept deliberately short and the candidate set is
reconciled against the expected subtotal afterwards.

Validation:
    items_total = sum of candidate amounts
    expected    = total - tax
    If the two disagree by more than max(expected * tolerance_ratio,
    tolerance_floor), the candidates are sorted by amount (largest first)
    and prefixes of length 1..max_combination are tested. The prefix closest
    to `expected`, within expected * match_ratio, replaces the candidates;
    otherwise a single generic "Products/Services" item is returned, unless
    that item would be priced exactly like the tax, in which case no items are
    returned.
"""

import re
from typing import List, Optional
from .money import ITEM_MONEY_PATTERNS, AmountToken, find_amounts, same_amount
from .trace import Tracer, NULL_TRACER
from ..receipt_types import ExtractionConfig, ReceiptItem

GENERIC_DESCRIPTION = "Products/Services"

EXCLUDE_PATTERNS = [
    re.compile(r"^\s*thank\s*you\b", re.I),
    re.compile(r"^\s*visit\s*again\b", re.I),
    re.compile(r"^\s*https?://", re.I),
    re.compile(r"^\s*\(?\d{3}\)?[\s\-]?\d{3}[\s\-]?\d{4}\s*$"),
    re.compile(r"^\s*store\s*hours?\b", re.I),
]

# Separators between neighbouring products on a merged line
_CONTEXT_SPLIT = re.compile(r"\d{12,}|<[A-Z]>|\s{3,}|\$?\d+\.\d{2}")


def is_excluded_line(line: str) -> bool:
    return any(p.search(line) for p in EXCLUDE_PATTERNS)


def clean_description(description: str) -> str:
    """Strip price/quantity noise around an item description"""
    cleaned = re.sub(r"<[A-Z]>", " ", description)
    cleaned = re.sub(r"^\d+\s*[xX@]\s+", "", cleaned.strip())
    cleaned = re.sub(r"^[\d\s\-.*#@$:|]+", "", cleaned)
    cleaned = re.sub(r"[\d\s\-.*#@$:|]+$", "", cleaned)
    cleaned = re.sub(r"SUBTOTAL.*$", "", cleaned, flags=re.I)
    cleaned = re.sub(r"\s+", " ", cleaned)
    return cleaned.strip()


def describe_token(
    line: str,
    token: AmountToken,
    tokens: List[AmountToken],
    line_index: int,
    token_index: int,
) -> str:
    """
    Build a description for one price on a line.

    A line holding several prices is described from the text just before
    each price; a single-price line is described by the rest of the line.
    """
    if len(tokens) > 1:
        context = line[max(0, token.start - 60):token.start].strip()
        parts = _CONTEXT_SPLIT.split(context)
        relevant = clean_description(parts[-1]) if parts else ""
        if len(relevant) > 3:
            return relevant
        return f"Item {token_index + 1} from line {line_index}"

    description = clean_description(line[:token.start] + " " + line[token.end:])
    if len(description) < 2:
        return f"Item {line_index}-{token_index}"
    return description


def reject_reason(
    amount: float,
    line: str,
    total: float,
    tax: float,
) -> Optional[str]:
    """Why a price can not be an item (None when it can)"""
    if amount <= 0 or amount > 9999:
        return "out_of_range"
    if total > 0 and same_amount(amount, total):
        return "matches_total"
    if tax > 0 and same_amount(amount, tax):
        return "matches_tax"
    if amount < 1.00 and "tax" not in line.lower():
        return "too_small"
    if 1000 <= amount <= 9999 and float(amount).is_integer():
        return "looks_like_code"
    return None


def validate_items(
    items: List[ReceiptItem],
    total: float,
    tax: float,
    config: ExtractionConfig,
    tracer: Optional[Tracer] = None,
) -> List[ReceiptItem]:
    """
    Reconcile candidate items against the expected subtotal (see module docstring).

    Candidates are kept untouched when no total is known.
    """
    tracer = tracer or NULL_TRACER
    expected = round(total - tax, 2)
    if total <= 0 or expected <= 0:
        return items

    items_total = sum(item.amount for item in items)
    tolerance = max(expected * config.item_tolerance_ratio, config.item_tolerance_floor)
    tracer.emit(
        "validate",
        "Checking item sum against expected subtotal",
        items_total=round(items_total, 2),
        expected=expected,
        tolerance=round(tolerance, 2),
    )
    if abs(items_total - expected) <= tolerance:
        return items

    ranked = sorted(items, key=lambda item: item.amount, reverse=True)
    best: List[ReceiptItem] = []
    best_difference = float("inf")

    for size in range(1, min(len(ranked), config.item_max_combination) + 1):
        combination = ranked[:size]
        difference = abs(sum(item.amount for item in combination) - expected)
        tracer.emit("validate", "Tested item combination", size=size, difference=round(difference, 2))
        if difference < best_difference and difference <= expected * config.item_match_ratio:
            best = combination
            best_difference = difference

    if best:
        tracer.emit("validate", "Using best item combination", size=len(best))
        return best

    # A generic item priced like the tax line would double-count the tax
    if same_amount(expected, tax):
        tracer.emit("validate", "No item combination matched; generic item would equal tax", amount=expected)
        return []

    tracer.emit("validate", "No item combination matched; using generic item", amount=expected)
    return [ReceiptItem(description=GENERIC_DESCRIPTION, amount=expected, quantity=1)]


def extract_items(
    lines: List[str],
    total: float,
    tax: float,
    total_line: Optional[int] = None,
    subtotal: float = 0.0,
    subtotal_line: Optional[int] = None,
    config: Optional[ExtractionConfig] = None,
    tracer: Optional[Tracer] = None,
) -> List[ReceiptItem]:
    """
    Extract line items from the lines preceding the total.

    Args:
        lines: Normalized receipt lines
        total: Final receipt total (0 when unknown)
        tax: Final tax amount
        total_line: Index of the line the total was read from; that line
            and everything after it (payment/footer) is ignored
        subtotal: Printed subtotal, reserved on its own line
        subtotal_line: Index of the line the subtotal was read from
        config: Validation thresholds
        tracer: Receives accept/reject decisions

    Returns:
        Item list, possibly empty
    """
    config = config or ExtractionConfig()
    tracer = tracer or NULL_TRACER
    end = total_line if total_line is not None else len(lines)
    items: List[ReceiptItem] = []

    for index, line in enumerate(lines[:end]):
        if is_excluded_line(line):
            tracer.emit("items", "Excluded line", line_index=index)
            continue

        tokens = find_amounts(line, ITEM_MONEY_PATTERNS)
        for token_index, token in enumerate(tokens):
            amount = token.value
            reason = reject_reason(amount, line, total, tax)
            if reason is None and index == subtotal_line and same_amount(amount, subtotal):
                reason = "matches_subtotal"
            if reason:
                tracer.emit("items", "Rejected amount", line_index=index, amount=amount, reason=reason)
                continue

            description = describe_token(line, token, tokens, index, token_index)
            duplicate = any(
                same_amount(item.amount, amount) and item.description.lower() == description.lower()
                for item in items
            )
            if duplicate:
                tracer.emit("items", "Duplicate item skipped", line_index=index, amount=amount)
                continue

            items.append(ReceiptItem(description=description, amount=amount, quantity=1))
            tracer.emit("items", "Item candidate added", line_index=index, amount=amount, description=description)

    return validate_items(items, total, tax, config, tracer)
