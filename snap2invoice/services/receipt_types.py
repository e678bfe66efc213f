
from typing import Any
from pydantic import BaseModel, ConfigDict, Field


class FieldCandidate(BaseModel):
    """A value proposed by one field extractor, before reconciliation"""
    model_config = ConfigDict(frozen=True)

    value: Any
    confidence: int = 0
    source_line: int | None = None  # Index into the normalized lines


class ReceiptItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str
    amount: float
    quantity: int = 1


class FieldConfidence(BaseModel):
    model_config = ConfigDict(frozen=True)

    merchant_name: int = 0
    total: int = 0
    tax: int = 0
    items: int = 0


class ExtractedReceipt(BaseModel):
    model_config = ConfigDict(frozen=True)

    merchant_name: str = ""
    date: str | None = None  # Verbatim substring from the receipt, not normalized
    items: tuple[ReceiptItem, ...] = ()
    subtotal: float = Field(default=0.0, ge=0)
    tax: float = Field(default=0.0, ge=0)
    tax_rate: float = 0.0  # Percentage of subtotal
    total: float = Field(default=0.0, ge=0)
    confidence: FieldConfidence = FieldConfidence()


class InvoiceLineItem(BaseModel):
    id: str
    description: str
    quantity: int = 1
    rate: float
    amount: float


class ExtractionConfig(BaseModel):
    """Tunables for the extraction engine (loaded from environment via settings)"""
    model_config = ConfigDict(frozen=True)

    single_line_threshold: int = 100
    merchant_scan_lines: int = 8
    item_tolerance_ratio: float = 0.1
    item_tolerance_floor: float = 10.0
    item_max_combination: int = 6
    item_match_ratio: float = 0.05


def extraction_config_from_settings(**overrides) -> ExtractionConfig:
    """
    Build an ExtractionConfig from environment settings.

    Keyword arguments that are not None override the configured values.
    """
    from ..core.config import settings

    values = {
        name: getattr(settings, name)
        for name in ExtractionConfig.model_fields
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return ExtractionConfig(**values)
