"""
Combine several receipts into the line items and totals of one invoice.

Only the arithmetic lives here; storing the invoice is the caller's job.
"""

from typing import Iterable, List, Tuple
from loguru import logger
from pydantic import BaseModel
from .extraction import extract_receipt_data, generate_invoice_items
from .receipt_types import ExtractedReceipt, ExtractionConfig, InvoiceLineItem


class InvoiceDraft(BaseModel):
    items: List[InvoiceLineItem] = []
    subtotal: float = 0.0
    tax: float = 0.0
    total: float = 0.0
    sources: List[str] = []   # Receipts that contributed items
    skipped: List[str] = []   # Receipts without OCR text
    receipts: List[ExtractedReceipt] = []


def build_invoice_draft(
    receipts: Iterable[Tuple[str, str | None]],
    config: ExtractionConfig | None = None,
) -> InvoiceDraft:
    """
    Extract every receipt and merge the results.

    Args:
        receipts: (source_name, ocr_text) pairs, e.g. file name and transcript
        config: Extraction tunables passed through to the engine

    Returns:
        InvoiceDraft whose items are tagged with their source receipt.
        Subtotal sums the projected item amounts, tax sums receipt taxes.
    """
    receipts = list(receipts)
    draft_items: List[InvoiceLineItem] = []
    extracted: List[ExtractedReceipt] = []
    subtotal = 0.0
    tax = 0.0
    sources = []
    skipped = []

    for receipt_index, (name, text) in enumerate(receipts):
        if text is None or not text.strip():
            logger.info(f"No OCR text available for {name}")
            skipped.append(name)
            continue

        receipt = extract_receipt_data(text, config=config)
        items = generate_invoice_items(receipt)
        for item_index, item in enumerate(items):
            draft_items.append(
                InvoiceLineItem(
                    id=f"receipt-{receipt_index}-item-{item_index}",
                    description=f"{item.description} (from {name})",
                    quantity=item.quantity,
                    rate=item.rate,
                    amount=item.amount,
                )
            )

        extracted.append(receipt)
        subtotal += sum(item.amount for item in items)
        tax += receipt.tax
        sources.append(name)
        logger.info(f"Added {len(items)} items from {name}")

    if not draft_items:
        draft_items = [
            InvoiceLineItem(
                id=f"placeholder-{index}",
                description=f"Services/Products from {name}",
                quantity=1,
                rate=0,
                amount=0,
            )
            for index, (name, _) in enumerate(receipts)
        ]

    subtotal = round(subtotal, 2)
    tax = round(tax, 2)
    return InvoiceDraft(
        items=draft_items,
        subtotal=subtotal,
        tax=tax,
        total=round(subtotal + tax, 2),
        sources=sources,
        skipped=skipped,
        receipts=extracted,
    )
