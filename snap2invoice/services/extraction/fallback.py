"""
Last-resort recovery when no total could be read from the receipt.

Scans the whole OCR text for anything shaped like money (including
misread currency symbols), takes the largest plausible amount as the
total, and builds items from product-looking lines when the primary
pipeline produced none. Values the primary pipeline did find are never
replaced.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional
from .money import FALLBACK_MONEY_PATTERNS, find_amounts, same_amount
from .trace import Tracer, NULL_TRACER
from ..receipt_types import ReceiptItem

FALLBACK_TOTAL_CONFIDENCE = 30
FALLBACK_ITEMS_CONFIDENCE = 30
FALLBACK_MAX_AMOUNT = 1000

_NON_PRODUCT_WORDS = (
    "total", "tax", "receipt", "invoice", "thank", "visit", "policy",
    "phone", "www", "auth", "approval", "transaction",
)
_PHONE_RE = re.compile(r"^\(?\d{3}\)?[\s\-]?\d{3}[\s\-]?\d{4}")
_ADDRESS_RE = re.compile(r"^\d+\s+\w+\s+(?:st|ave|rd|blvd|dr|ln)\b", re.I)


@dataclass
class FallbackResult:
    total: float = 0.0
    items: List[ReceiptItem] = field(default_factory=list)
    items_synthesized: bool = False


def find_candidate_amounts(raw_text: str) -> List[float]:
    """Distinct money-shaped amounts in (0, 1000), largest first"""
    amounts = []
    for token in find_amounts(raw_text, FALLBACK_MONEY_PATTERNS):
        if 0 < token.value < FALLBACK_MAX_AMOUNT and not any(same_amount(token.value, a) for a in amounts):
            amounts.append(token.value)
    return sorted(amounts, reverse=True)


def find_product_names(lines: List[str], merchant_name: str = "") -> List[str]:
    """Lines that read like a product name once prices and numbering are removed"""
    names = []
    for line in lines:
        cleaned = re.sub(r"[$£€¢]\s*[\d,]+\.\d{2}", "", line)
        cleaned = re.sub(r"\b\d+\.\d{2}\b", "", cleaned)
        cleaned = re.sub(r"^[\d\s\-.#]*", "", cleaned)
        cleaned = re.sub(r"[\s\-.]*$", "", cleaned)
        cleaned = re.sub(r"\s+", " ", cleaned).strip()

        lowered = cleaned.lower()
        if not 3 < len(cleaned) < 60:
            continue
        if merchant_name and lowered == merchant_name.lower():
            continue
        if any(word in lowered for word in _NON_PRODUCT_WORDS):
            continue
        if _PHONE_RE.match(line.strip()) or _ADDRESS_RE.match(line.strip()):
            continue
        if not re.search(r"[a-zA-Z]", cleaned):
            continue
        names.append(cleaned)
    return names


def synthesize_items(
    amounts: List[float],
    product_names: List[str],
    merchant_name: str = "",
) -> List[ReceiptItem]:
    """
    Manufacture items from bare amounts.

    With several amounts the largest is taken to be the total, so items
    start from the second largest.
    """
    if not amounts:
        return []

    if len(amounts) == 1:
        if product_names:
            description = product_names[0]
        elif merchant_name:
            description = f"Services/Products from {merchant_name}"
        else:
            description = "Services/Products"
        return [ReceiptItem(description=description, amount=amounts[0], quantity=1)]

    if product_names:
        first_description = product_names[0]
    elif merchant_name:
        first_description = f"Product/Service from {merchant_name}"
    else:
        first_description = "Product/Service"

    items = [ReceiptItem(description=first_description, amount=amounts[1], quantity=1)]
    for index, amount in enumerate(amounts[2:], start=2):
        if product_names:
            description = product_names[min(index - 1, len(product_names) - 1)]
        else:
            description = f"Additional Item (${amount:.2f})"
        items.append(ReceiptItem(description=description, amount=amount, quantity=1))
    return items


def apply_fallback(
    raw_text: str,
    lines: List[str],
    items: List[ReceiptItem],
    merchant_name: str = "",
    tracer: Optional[Tracer] = None,
) -> FallbackResult:
    """
    Recover a total (and items, if none) from a receipt with no readable total.

    Items already found whose amount equals the recovered total are dropped,
    since the total is never double-counted as an item.
    """
    tracer = tracer or NULL_TRACER
    amounts = find_candidate_amounts(raw_text)
    if not amounts:
        tracer.emit("fallback", "No money-shaped amounts in text")
        return FallbackResult(total=0.0, items=list(items))

    total = amounts[0]
    tracer.emit("fallback", "Fallback total chosen", total=total, candidates=len(amounts))

    kept = [item for item in items if not same_amount(item.amount, total)]
    if len(kept) != len(items):
        tracer.emit("fallback", "Dropped items equal to fallback total", dropped=len(items) - len(kept))
    if kept:
        return FallbackResult(total=total, items=kept)

    product_names = find_product_names(lines, merchant_name)
    synthesized = synthesize_items(amounts, product_names, merchant_name)
    tracer.emit("fallback", "Synthesized fallback items", count=len(synthesized), product_names=len(product_names))
    return FallbackResult(total=total, items=synthesized, items_synthesized=True)
