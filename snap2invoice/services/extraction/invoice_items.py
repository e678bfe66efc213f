
from typing import List
from ..receipt_types import ExtractedReceipt, InvoiceLineItem


def generate_invoice_items(receipt: ExtractedReceipt) -> List[InvoiceLineItem]:
    """
    Project an extracted receipt onto invoice line items.

    Each receipt item becomes one line (quantity 1, rate = amount). A
    receipt with a total but no items gets a single placeholder line for
    the pre-tax amount.
    """
    items = [
        InvoiceLineItem(
            id=f"item-{index}",
            description=item.description,
            quantity=1,
            rate=item.amount,
            amount=item.amount,
        )
        for index, item in enumerate(receipt.items)
    ]

    if not items and receipt.total > 0:
        amount = round(receipt.total - (receipt.tax or 0), 2)
        items.append(
            InvoiceLineItem(
                id="item-0",
                description=f"Services/Products from {receipt.merchant_name or 'Merchant'}",
                quantity=1,
                rate=amount,
                amount=amount,
            )
        )

    return items
