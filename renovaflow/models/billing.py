"""Money owed to and by a project: invoice lines and outbound payments."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, ForeignKey, Integer, Text, text
from sqlalchemy.orm import relationship

from ..db.session import Base


class BillingItem(Base):
    __tablename__ = "billing_items"
    __allow_unmapped__ = True

    id = Column(Text, primary_key=True)
    project_id = Column(
        "projectId", Text, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(Text, nullable=True)
    amount = Column(Integer, nullable=True)
    expected_payment_date = Column("expectedPaymentDate", Text, nullable=True)
    is_billed = Column("isBilled", Boolean, nullable=False, default=False, server_default=text("0"))
    is_paid = Column("isPaid", Boolean, nullable=False, default=False, server_default=text("0"))

    project = relationship("Project", back_populates="billing_items")


class OutboundPayment(Base):
    __tablename__ = "outbound_payments"
    __allow_unmapped__ = True

    id = Column(Text, primary_key=True)
    project_id = Column(
        "projectId", Text, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    recipient = Column(Text, nullable=True)
    amount = Column(Integer, nullable=True)
    expected_date = Column("expectedDate", Text, nullable=True)
    is_paid = Column("isPaid", Boolean, nullable=False, default=False, server_default=text("0"))

    project = relationship("Project", back_populates="outbound_payments")


__all__ = ["BillingItem", "OutboundPayment"]
