from fastapi import APIRouter, HTTPException
from loguru import logger
from pydantic import BaseModel
from ...services.invoice_draft import InvoiceDraft, build_invoice_draft

router = APIRouter(prefix="/invoices", tags=["invoices"])


class DraftReceipt(BaseModel):
    name: str
    text: str | None = None  # None when OCR has not run for this receipt


class DraftRequest(BaseModel):
    receipts: list[DraftReceipt]


@router.post("/draft", response_model=InvoiceDraft)
async def draft_invoice(req: DraftRequest):
    """
    Build invoice line items and totals from several receipts.

    Example request:
    {
        "receipts": [
            {"name": "lunch.jpg", "text": "Joe's Diner\\nBurger $8.00\\nTotal $8.00"},
            {"name": "parking.jpg", "text": null}
        ]
    }
    """
    if not req.receipts:
        raise HTTPException(status_code=422, detail="No receipts provided")

    try:
        logger.info("Invoice draft requested", receipt_count=len(req.receipts))
        return build_invoice_draft((r.name, r.text) for r in req.receipts)
    except Exception as e:
        logger.error(f"Invoice draft failed: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))
