"""Progress flag updates for billing items and outbound payments."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError
from ..crud.items import mark_billing_item, mark_outbound_payment_paid
from ..db.session import get_db
from ..models.billing import BillingItem, OutboundPayment
from ..schemas.common import SuccessResponse
from ..schemas.project import BillingItemPatch, OutboundPaymentPatch

router = APIRouter(prefix="/api", tags=["billing"])


@router.patch("/billing_items/{item_id}", response_model=SuccessResponse)
def api_patch_billing_item(item_id: str, payload: BillingItemPatch, db: Session = Depends(get_db)):
    if not (payload.is_billed or payload.is_paid):
        if db.get(BillingItem, item_id) is None:
            raise NotFoundError("Billing item not found")
        return SuccessResponse()
    mark_billing_item(db, item_id, is_billed=payload.is_billed, is_paid=payload.is_paid)
    return SuccessResponse()


@router.patch("/outbound_payments/{payment_id}", response_model=SuccessResponse)
def api_patch_outbound_payment(payment_id: str, payload: OutboundPaymentPatch, db: Session = Depends(get_db)):
    if not payload.is_paid:
        if db.get(OutboundPayment, payment_id) is None:
            raise NotFoundError("Outbound payment not found")
        return SuccessResponse()
    mark_outbound_payment_paid(db, payment_id)
    return SuccessResponse()
