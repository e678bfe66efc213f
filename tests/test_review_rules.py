"""
Tests for the receipt review rules

These rules decide whether an extracted receipt can go straight into an
invoice or should be checked by the user first.
"""

import pytest
from snap2invoice.services.extraction import extract_receipt_data
from snap2invoice.services.receipt_types import ExtractedReceipt, FieldConfidence, ReceiptItem
from snap2invoice.services.review_rules import (
    ReceiptReviewRules,
    ReviewRulesConfig,
    create_review_rules,
    is_valid_receipt,
    overall_confidence,
)


@pytest.fixture
def rules():
    return ReceiptReviewRules(ReviewRulesConfig(min_confidence=60))


def test_confident_receipt_is_ready(rules, grocery_receipt):
    """A clean receipt with matching items needs no review"""
    decision = rules.evaluate(extract_receipt_data(grocery_receipt))

    assert decision.needs_review is False
    assert decision.reason.startswith("Ready")
    assert all(decision.checks.values())
    assert decision.metadata["overall_confidence"] == 88
    assert decision.metadata["valid"] is True


def test_fallback_receipt_needs_review(rules, no_total_receipt):
    """A total recovered by the fallback has low confidence"""
    decision = rules.evaluate(extract_receipt_data(no_total_receipt))

    assert decision.needs_review is True
    assert decision.checks["confidence_sufficient"] is False
    assert "Confidence 35% below minimum 60%" in decision.reason


def test_min_confidence_override(no_total_receipt):
    """A lower threshold lets the same receipt through"""
    decision = create_review_rules(min_confidence=30).evaluate(extract_receipt_data(no_total_receipt))

    assert decision.needs_review is False


def test_empty_receipt(rules):
    decision = rules.evaluate(ExtractedReceipt())

    assert decision.needs_review is True
    assert decision.checks["has_total"] is False
    assert "No total found" in decision.reason
    assert "Merchant name not found" in decision.reason
    assert decision.metadata["overall_confidence"] == 0


def test_items_far_from_subtotal(rules):
    """Items must add up to total - tax within the tolerance"""
    receipt = ExtractedReceipt(
        merchant_name="Acme Store",
        items=(ReceiptItem(description="Widget", amount=10.0),),
        total=100.0,
        confidence=FieldConfidence(merchant_name=70, total=100, items=70),
    )

    decision = rules.evaluate(receipt)

    assert decision.needs_review is True
    assert decision.checks["items_match_subtotal"] is False
    assert "Items add up to $10.00, expected $100.00" in decision.reason


class TestOverallConfidence:
    def test_weighted_mean(self):
        confidence = FieldConfidence(merchant_name=70, total=100, tax=100, items=70)

        assert overall_confidence(ExtractedReceipt(confidence=confidence)) == 88

    def test_missing_fields_are_not_counted(self):
        confidence = FieldConfidence(merchant_name=50, total=30, items=30)

        assert overall_confidence(ExtractedReceipt(confidence=confidence)) == 35

    def test_nothing_found(self):
        assert overall_confidence(ExtractedReceipt()) == 0


class TestValidReceipt:
    def test_valid(self, diner_receipt):
        assert is_valid_receipt(extract_receipt_data(diner_receipt))

    def test_no_total(self):
        assert not is_valid_receipt(ExtractedReceipt())

    def test_tax_above_total(self):
        assert not is_valid_receipt(ExtractedReceipt(total=5.0, tax=6.0))
