from fastapi import APIRouter, HTTPException
from loguru import logger
from ..deps import ExtractRequest, ExtractResponse
from ...services.extraction import MissingReceiptText, extract_receipt_data, generate_invoice_items
from ...services.receipt_types import ExtractedReceipt, InvoiceLineItem
from ...services.review_rules import ReviewDecision, create_review_rules, is_valid_receipt, overall_confidence

router = APIRouter(prefix="/receipts", tags=["receipts"])


@router.post("/extract", response_model=ExtractResponse)
async def extract(req: ExtractRequest):
    """
    Extract structured receipt data from OCR text.

    Example request:
    {
        "text": "Joe's Diner\\nBurger $8.00\\nFries $3.00\\nTax $0.88\\nTotal $11.88"
    }

    The response carries the extracted receipt, the invoice line items
    projected from it and an overall confidence the UI can use to flag
    the receipt for review.
    """
    try:
        receipt = extract_receipt_data(req.text)
        return ExtractResponse(
            receipt=receipt,
            invoice_items=generate_invoice_items(receipt),
            overall_confidence=overall_confidence(receipt),
            valid=is_valid_receipt(receipt),
        )
    except MissingReceiptText as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error(f"Receipt extraction failed: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/invoice-items", response_model=list[InvoiceLineItem])
async def invoice_items(receipt: ExtractedReceipt):
    """Project an (optionally user-corrected) extracted receipt onto invoice line items"""
    return generate_invoice_items(receipt)


@router.post("/review", response_model=ReviewDecision)
async def review(req: ExtractRequest, min_confidence: float | None = None):
    """
    Extract a receipt and decide whether it needs a human to check it.

    min_confidence overrides REVIEW_MIN_CONFIDENCE for this request.
    """
    try:
        receipt = extract_receipt_data(req.text)
        rules = create_review_rules(min_confidence=min_confidence)
        return rules.evaluate(receipt)
    except MissingReceiptText as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error(f"Receipt review failed: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))
