from .engine import MissingReceiptText, extract_receipt_data
from .invoice_items import generate_invoice_items
from .trace import ExtractionTraceEvent, Tracer

__all__ = [
    "ExtractionTraceEvent",
    "MissingReceiptText",
    "Tracer",
    "extract_receipt_data",
    "generate_invoice_items",
]
