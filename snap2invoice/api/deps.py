
from pydantic import BaseModel
from ..services.receipt_types import ExtractedReceipt, InvoiceLineItem

class ExtractRequest(BaseModel):
    text: str  # OCR transcription of one receipt

class ExtractResponse(BaseModel):
    receipt: ExtractedReceipt
    invoice_items: list[InvoiceLineItem] = []
    overall_confidence: int = 0
    valid: bool = False
