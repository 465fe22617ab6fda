import math
from decimal import Decimal
from typing import Dict, List

from sqlalchemy.orm import Session, joinedload

from venue_office.models.invoice import InvoiceItem
from venue_office.models.service import SubtotalType


def calculate_tax_amount(amount, tax_rate) -> Decimal:
    return Decimal(math.floor(Decimal(amount) / 100 * Decimal(tax_rate)))


def calculate_amounts(db: Session, invoice_item_ids: List[int], tax_rate) -> Dict[str, Decimal]:
    """
    Totals for a prospective invoice over the given items.

    The service fee is charged on service-fee-taxable items; non-taxable
    items are excluded from the tax base; booking-detail discounts are
    counted once per detail.
    """
    items = (
        db.query(InvoiceItem)
        .options(joinedload(InvoiceItem.service), joinedload(InvoiceItem.booking_detail))
        .filter(InvoiceItem.id.in_(invoice_item_ids))
        .all()
    ) if invoice_item_ids else []

    service_fee = calculate_tax_amount(
        sum(
            (Decimal(item.subtotal_without_tax_amount) for item in items
             if item.service and item.service.subtotal_type == SubtotalType.service_fee),
            Decimal(0),
        ),
        tax_rate,
    )

    discounts = {
        item.booking_detail_id: Decimal(item.booking_detail.discount_amount)
        for item in items
        if item.booking_detail and item.booking_detail.discount_amount
    }
    discount_without_tax_amount = -sum(discounts.values(), Decimal(0))

    items_without_tax = sum(
        (Decimal(item.subtotal_without_tax_amount) for item in items), Decimal(0)
    )
    taxable_items = sum(
        (Decimal(item.subtotal_without_tax_amount) for item in items
         if not item.service or item.service.subtotal_type != SubtotalType.non_taxable),
        Decimal(0),
    )

    subtotal_without_tax_amount = items_without_tax + service_fee + discount_without_tax_amount
    taxable_amount = taxable_items + service_fee + discount_without_tax_amount
    tax_amount = calculate_tax_amount(taxable_amount, tax_rate)

    return {
        "service_fee": service_fee,
        "discount_without_tax_amount": discount_without_tax_amount,
        "subtotal_without_tax_amount": subtotal_without_tax_amount,
        "taxable_amount": taxable_amount,
        "tax_amount": tax_amount,
        "subtotal": subtotal_without_tax_amount + tax_amount,
    }
