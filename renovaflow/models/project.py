"""SQLAlchemy model for renovation projects.

Column names use the camelCase spelling of databases created by earlier
releases so an existing ``renovaflow.db`` can be opened in place.
"""

from __future__ import annotations

from sqlalchemy import Column, Text
from sqlalchemy.orm import relationship

from ..db.session import Base

REMARK_FIELDS = (
    "estimate_remarks",
    "order_remarks",
    "construction_remarks",
    "billing_remarks",
    "payment_remarks",
    "outbound_payment_remarks",
)


class Project(Base):
    """One renovation job and its workflow state."""

    __tablename__ = "projects"
    __allow_unmapped__ = True

    id = Column(Text, primary_key=True)
    status = Column(Text, nullable=False)

    estimate_date = Column("estimateDate", Text, nullable=False)
    order_date = Column("orderDate", Text, nullable=True)
    construction_start_date = Column("constructionStartDate", Text, nullable=True)
    completion_date = Column("completionDate", Text, nullable=False)
    payment_date = Column("paymentDate", Text, nullable=True)

    title = Column(Text, nullable=False)
    property_name = Column("propertyName", Text, nullable=True)
    payment_method = Column("paymentMethod", Text, nullable=True)

    estimate_remarks = Column("estimateRemarks", Text, nullable=True)
    order_remarks = Column("orderRemarks", Text, nullable=True)
    construction_remarks = Column("constructionRemarks", Text, nullable=True)
    billing_remarks = Column("billingRemarks", Text, nullable=True)
    payment_remarks = Column("paymentRemarks", Text, nullable=True)
    outbound_payment_remarks = Column("outboundPaymentRemarks", Text, nullable=True)

    customer_name = Column("customerName", Text, nullable=True)
    customer_zip_code = Column("customerZipCode", Text, nullable=True)
    customer_address = Column("customerAddress", Text, nullable=True)
    customer_tel = Column("customerTel", Text, nullable=True)
    customer_email = Column("customerEmail", Text, nullable=True)

    construction_staff = relationship(
        "ConstructionStaff",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    billing_items = relationship(
        "BillingItem",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    outbound_payments = relationship(
        "OutboundPayment",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    files = relationship(
        "ProjectFile",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def folder_name(self) -> str:
        return self.property_name or self.title or self.id


__all__ = ["Project", "REMARK_FIELDS"]
