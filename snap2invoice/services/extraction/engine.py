"""
Receipt text to structured data.

extract_receipt_data() runs the whole pipeline on one OCR transcription:

    raw text -> lines -> field candidates -> reconciled fields -> items
             -> (fallback when no total) -> ExtractedReceipt

The engine is pure: no I/O, no shared state. It never raises on
low-quality text; weak answers come back with low confidence so a human
can review them. Only a missing (None) input is rejected.
"""

from typing import Optional
from loguru import logger
from .fallback import apply_fallback, FALLBACK_ITEMS_CONFIDENCE, FALLBACK_TOTAL_CONFIDENCE
from .field_extractors import (
    extract_date,
    extract_merchant_name,
    extract_subtotal,
    extract_tax,
    extract_total,
)
from .item_extractor import extract_items
from .line_normalizer import normalize_lines
from .reconciler import reconcile
from .trace import TraceCallback, Tracer
from ..receipt_types import (
    ExtractedReceipt,
    ExtractionConfig,
    FieldConfidence,
    extraction_config_from_settings,
)

ITEMS_FOUND_CONFIDENCE = 70
ITEMS_MISSING_CONFIDENCE = 10


class MissingReceiptText(ValueError):
    """Raised when no OCR text was supplied at all"""


def extract_receipt_data(
    raw_text: str | bytes | None,
    config: Optional[ExtractionConfig] = None,
    trace: Optional[TraceCallback] = None,
) -> ExtractedReceipt:
    """
    Extract merchant, date, items, subtotal, tax and total from OCR text.

    Args:
        raw_text: OCR transcription of one receipt (bytes are decoded as UTF-8)
        config: Extraction tunables (defaults come from settings)
        trace: Optional callback receiving ExtractionTraceEvent objects

    Returns:
        ExtractedReceipt (all-zero when the text is blank)

    Raises:
        MissingReceiptText: raw_text is None
    """
    if raw_text is None:
        raise MissingReceiptText("No text provided")
    if isinstance(raw_text, bytes):
        raw_text = raw_text.decode("utf-8", errors="replace")

    config = config or extraction_config_from_settings()
    tracer = Tracer(trace)

    if not raw_text.strip():
        tracer.emit("result", "Blank receipt text")
        return ExtractedReceipt()

    lines = normalize_lines(raw_text, config.single_line_threshold, tracer)

    merchant = extract_merchant_name(lines, config.merchant_scan_lines, tracer)
    merchant_name = merchant.value if merchant else ""

    total_candidate = extract_total(lines, tracer)
    total = total_candidate.value if total_candidate else 0.0

    subtotal_candidate = extract_subtotal(lines, total, tracer)
    tax_candidate = extract_tax(lines, total, tracer)
    date_candidate = extract_date(lines, tracer)

    tax = tax_candidate.value if tax_candidate else 0.0
    printed_subtotal = subtotal_candidate.value if subtotal_candidate else 0.0
    subtotal, tax_rate = reconcile(total, tax, printed_subtotal, tracer)

    items = extract_items(
        lines,
        total,
        tax,
        total_line=total_candidate.source_line if total_candidate else None,
        subtotal=printed_subtotal,
        subtotal_line=subtotal_candidate.source_line if subtotal_candidate else None,
        config=config,
        tracer=tracer,
    )
    items_confidence = ITEMS_FOUND_CONFIDENCE if items else ITEMS_MISSING_CONFIDENCE
    total_confidence = total_candidate.confidence if total_candidate else 0

    if total == 0:
        recovered = apply_fallback(raw_text, lines, items, merchant_name, tracer)
        items = recovered.items
        if recovered.total > 0:
            total = recovered.total
            total_confidence = FALLBACK_TOTAL_CONFIDENCE
        if recovered.items_synthesized and items:
            items_confidence = FALLBACK_ITEMS_CONFIDENCE
        elif not items:
            items_confidence = ITEMS_MISSING_CONFIDENCE

    receipt = ExtractedReceipt(
        merchant_name=merchant_name,
        date=date_candidate.value if date_candidate else None,
        items=tuple(items),
        subtotal=subtotal,
        tax=tax,
        tax_rate=tax_rate,
        total=total,
        confidence=FieldConfidence(
            merchant_name=merchant.confidence if merchant else 0,
            total=total_confidence,
            tax=tax_candidate.confidence if tax_candidate else 0,
            items=items_confidence,
        ),
    )

    tracer.emit(
        "result",
        "Receipt extracted",
        merchant=receipt.merchant_name,
        total=receipt.total,
        tax=receipt.tax,
        subtotal=receipt.subtotal,
        item_count=len(receipt.items),
    )
    logger.info(
        "Receipt extracted",
        line_count=len(lines),
        total=receipt.total,
        item_count=len(receipt.items),
        total_confidence=receipt.confidence.total,
    )
    return receipt
