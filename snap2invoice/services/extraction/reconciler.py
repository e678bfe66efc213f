
from typing import Optional, Tuple
from .trace import Tracer, NULL_TRACER


def reconcile(
    total: float,
    tax: float,
    subtotal: float,
    tracer: Optional[Tracer] = None,
) -> Tuple[float, float]:
    """
    Derive the fields a receipt did not print explicitly.

    Returns:
        (subtotal, tax_rate) where subtotal falls back to total - tax and
        tax_rate is a percentage of the subtotal (0 when unknown)
    """
    tracer = tracer or NULL_TRACER
    tax_rate = 0.0

    if total > 0 and tax > 0 and subtotal == 0:
        subtotal = round(total - tax, 2)
        tracer.emit("reconcile", "Subtotal derived from total - tax", subtotal=subtotal)

    if tax > 0 and subtotal > 0:
        tax_rate = tax / subtotal * 100
        tracer.emit("reconcile", "Tax rate derived", tax_rate=round(tax_rate, 2))

    return subtotal, tax_rate
