"""Progress flags on billing items and outbound payments.

Flags only ever move from false to true here; unsetting one requires a full
project update.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import ConflictError, NotFoundError, StoreError
from ..models.billing import BillingItem, OutboundPayment
from ..models.project import Project
from ..services.lifecycle import auto_advance_on_full_billing

logger = logging.getLogger(__name__)


def mark_billing_item(
    db: Session,
    item_id: str,
    *,
    is_billed: bool | None = None,
    is_paid: bool | None = None,
) -> bool:
    """Set the billed and/or paid flag of a billing item.

    Returns ``True`` when marking the item billed moved its project on to the
    payment-in status.
    """

    item = db.get(BillingItem, item_id)
    if item is None:
        raise NotFoundError("Billing item not found")
    if is_paid and not (item.is_billed or is_billed):
        raise ConflictError("Billing item must be billed before it can be marked paid")

    advanced = False
    try:
        if is_billed:
            item.is_billed = True
        if is_paid:
            item.is_paid = True
        if is_billed:
            project = db.get(Project, item.project_id)
            if project is not None:
                advanced = auto_advance_on_full_billing(db, project)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("billing_item.update_failed", extra={"extra_data": {"item_id": item_id}})
        raise StoreError("Failed to update billing item") from exc
    logger.info(
        "billing_item.updated",
        extra={
            "extra_data": {
                "item_id": item_id,
                "is_billed": bool(is_billed),
                "is_paid": bool(is_paid),
                "auto_advanced": advanced,
            }
        },
    )
    return advanced


def mark_outbound_payment_paid(db: Session, payment_id: str) -> OutboundPayment:
    payment = db.get(OutboundPayment, payment_id)
    if payment is None:
        raise NotFoundError("Outbound payment not found")
    payment.is_paid = True
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("outbound_payment.update_failed", extra={"extra_data": {"payment_id": payment_id}})
        raise StoreError("Failed to update outbound payment") from exc
    return payment
