"""
Review rules for extracted receipts.

The extraction engine always returns an answer; these rules decide whether
that answer is trustworthy enough to drop straight into an invoice or
should be flagged for the user to check first.
"""

from loguru import logger
from typing import Dict, Any
from pydantic import BaseModel
from .receipt_types import ExtractedReceipt

CONFIDENCE_WEIGHTS = {
    "merchant_name": 0.2,
    "total": 0.4,
    "tax": 0.2,
    "items": 0.2,
}


def overall_confidence(receipt: ExtractedReceipt) -> int:
    """
    Weighted mean of the per-field confidences.

    Fields with zero confidence (not found) are left out of both the sum
    and the weight, so a receipt without tax is not punished twice.

    Returns:
        0-100, or 0 when nothing was found
    """
    confidences = receipt.confidence.model_dump()
    weighted_sum = 0.0
    total_weight = 0.0

    for field_name, weight in CONFIDENCE_WEIGHTS.items():
        value = confidences.get(field_name, 0)
        if value > 0:
            weighted_sum += value * weight
            total_weight += weight

    return round(weighted_sum / total_weight) if total_weight > 0 else 0


def is_valid_receipt(receipt: ExtractedReceipt) -> bool:
    """Numeric sanity: a total was found and tax/subtotal fit inside it"""
    has_reasonable_total = 0 < receipt.total < 10000
    tax_valid = 0 <= receipt.tax <= receipt.total
    subtotal_valid = 0 <= receipt.subtotal <= receipt.total
    return has_reasonable_total and tax_valid and subtotal_valid


class ReviewDecision(BaseModel):
    """Result of a review decision with explanation"""
    needs_review: bool
    reason: str
    checks: Dict[str, bool]
    metadata: Dict[str, Any] = {}


class ReviewRulesConfig(BaseModel):
    """Configuration for review rules (loaded from environment)"""
    min_confidence: float = 60.0
    item_tolerance_ratio: float = 0.1
    item_tolerance_floor: float = 10.0


class ReceiptReviewRules:
    """
    Encapsulates the checks that decide whether an extracted receipt can be
    used without a human looking at it.
    """

    def __init__(self, config: ReviewRulesConfig = None):
        self.config = config or ReviewRulesConfig()

    def evaluate(self, receipt: ExtractedReceipt) -> ReviewDecision:
        """
        Evaluate an extracted receipt.

        Args:
            receipt: Output of extract_receipt_data()

        Returns:
            ReviewDecision with needs_review flag, reason and check details
        """
        checks = {}
        reasons = []

        checks["has_total"] = receipt.total > 0
        if not checks["has_total"]:
            reasons.append("No total found")

        checks["total_in_range"] = 0 < receipt.total < 10000
        if checks["has_total"] and not checks["total_in_range"]:
            reasons.append(f"Total ${receipt.total:.2f} is outside the expected range")

        checks["tax_within_total"] = 0 <= receipt.tax <= receipt.total
        if not checks["tax_within_total"]:
            reasons.append(f"Tax ${receipt.tax:.2f} exceeds total ${receipt.total:.2f}")

        checks["subtotal_within_total"] = 0 <= receipt.subtotal <= receipt.total
        if not checks["subtotal_within_total"]:
            reasons.append(f"Subtotal ${receipt.subtotal:.2f} exceeds total ${receipt.total:.2f}")

        checks["has_merchant"] = bool(receipt.merchant_name)
        if not checks["has_merchant"]:
            reasons.append("Merchant name not found")

        checks["has_items"] = len(receipt.items) > 0
        if not checks["has_items"]:
            reasons.append("No line items found")

        # Items should add up to the pre-tax amount
        expected = receipt.total - receipt.tax
        items_total = sum(item.amount for item in receipt.items)
        tolerance = max(expected * self.config.item_tolerance_ratio, self.config.item_tolerance_floor)
        checks["items_match_subtotal"] = checks["has_items"] and abs(items_total - expected) <= tolerance
        if checks["has_items"] and not checks["items_match_subtotal"]:
            reasons.append(
                f"Items add up to ${items_total:.2f}, expected ${expected:.2f}"
            )

        confidence = overall_confidence(receipt)
        checks["confidence_sufficient"] = confidence >= self.config.min_confidence
        if not checks["confidence_sufficient"]:
            reasons.append(
                f"Confidence {confidence}% below minimum {self.config.min_confidence:.0f}%"
            )

        needs_review = not all(checks.values())
        if needs_review:
            reason = "Needs review: " + "; ".join(reasons)
        else:
            reason = f"Ready: ${receipt.total:.2f}, {confidence}% confidence"

        logger.info(
            "Receipt review decision",
            needs_review=needs_review,
            total=receipt.total,
            confidence=confidence,
            merchant=receipt.merchant_name,
            checks=checks
        )

        return ReviewDecision(
            needs_review=needs_review,
            reason=reason,
            checks=checks,
            metadata={
                "total": receipt.total,
                "overall_confidence": confidence,
                "merchant_name": receipt.merchant_name,
                "valid": is_valid_receipt(receipt),
                "config": self.config.model_dump()
            }
        )


def create_review_rules(min_confidence: float = None) -> ReceiptReviewRules:
    """
    Factory function to create review rules with optional overrides.

    Uses environment variables as defaults, can be overridden per request.
    """
    from ..core.config import settings

    config = ReviewRulesConfig(
        min_confidence=min_confidence if min_confidence is not None else getattr(settings, 'review_min_confidence', 60.0),
        item_tolerance_ratio=getattr(settings, 'item_tolerance_ratio', 0.1),
        item_tolerance_floor=getattr(settings, 'item_tolerance_floor', 10.0),
    )

    return ReceiptReviewRules(config)
