"""Pydantic schemas that describe project payloads for the API."""

from __future__ import annotations

from typing import Annotated, Any, Optional

from pydantic import BeforeValidator, Field, field_validator

from ..services.lifecycle import ProjectStatus
from .common import CamelModel


def _parse_amount(value: Any) -> Any:
    # The project form posts amounts with thousands separators and blanks.
    if isinstance(value, str):
        cleaned = value.replace(",", "").strip()
        return int(cleaned) if cleaned else 0
    if value is None:
        return 0
    return value


Amount = Annotated[int, BeforeValidator(_parse_amount)]


class ConstructionStaffIn(CamelModel):
    id: Optional[str] = None
    name: Optional[str] = None
    zip_code: Optional[str] = None
    address: Optional[str] = None
    tel: Optional[str] = None
    email: Optional[str] = None


class ConstructionStaffOut(ConstructionStaffIn):
    id: str


class BillingItemIn(CamelModel):
    id: Optional[str] = None
    name: Optional[str] = None
    amount: Amount = 0
    expected_payment_date: Optional[str] = None
    is_billed: bool = False
    is_paid: bool = False


class BillingItemOut(BillingItemIn):
    id: str


class OutboundPaymentIn(CamelModel):
    id: Optional[str] = None
    recipient: Optional[str] = None
    amount: Amount = 0
    expected_date: Optional[str] = None
    is_paid: bool = False


class OutboundPaymentOut(OutboundPaymentIn):
    id: str


class ProjectFileOut(CamelModel):
    id: str
    name: str
    url: str


class ProjectFields(CamelModel):
    status: ProjectStatus
    estimate_date: str = Field(min_length=1)
    order_date: Optional[str] = None
    construction_start_date: Optional[str] = None
    completion_date: str = Field(min_length=1)
    payment_date: Optional[str] = None
    title: str = Field(min_length=1)
    property_name: Optional[str] = None
    payment_method: Optional[str] = None
    estimate_remarks: Optional[str] = None
    order_remarks: Optional[str] = None
    construction_remarks: Optional[str] = None
    billing_remarks: Optional[str] = None
    payment_remarks: Optional[str] = None
    outbound_payment_remarks: Optional[str] = None
    customer_name: Optional[str] = None
    customer_zip_code: Optional[str] = None
    customer_address: Optional[str] = None
    customer_tel: Optional[str] = None
    customer_email: Optional[str] = None


class ProjectCreate(ProjectFields):
    id: str = Field(min_length=1)
    status: ProjectStatus = ProjectStatus.ESTIMATE
    construction_staff: list[ConstructionStaffIn] = Field(default_factory=list)
    billing_items: list[BillingItemIn] = Field(default_factory=list)
    outbound_payments: list[OutboundPaymentIn] = Field(default_factory=list)


class ProjectReplace(ProjectFields):
    """Full replacement body for PUT. Any ``id`` in the body is ignored."""

    construction_staff: list[ConstructionStaffIn] = Field(default_factory=list)
    billing_items: list[BillingItemIn] = Field(default_factory=list)
    outbound_payments: list[OutboundPaymentIn] = Field(default_factory=list)


class ProjectPatch(CamelModel):
    status: Optional[ProjectStatus] = None
    estimate_remarks: Optional[str] = None
    order_remarks: Optional[str] = None
    construction_remarks: Optional[str] = None
    billing_remarks: Optional[str] = None
    payment_remarks: Optional[str] = None
    outbound_payment_remarks: Optional[str] = None

    @field_validator("status")
    @classmethod
    def status_not_null(cls, value: Optional[ProjectStatus]) -> Optional[ProjectStatus]:
        if value is None:
            raise ValueError("status cannot be null")
        return value


class ProjectOut(ProjectFields):
    id: str
    estimate_date: Optional[str] = None
    completion_date: Optional[str] = None
    title: Optional[str] = None
    construction_staff: list[ConstructionStaffOut] = Field(default_factory=list)
    billing_items: list[BillingItemOut] = Field(default_factory=list)
    outbound_payments: list[OutboundPaymentOut] = Field(default_factory=list)


class ProjectDetail(ProjectOut):
    files: list[ProjectFileOut] = Field(default_factory=list)


class BillingItemPatch(CamelModel):
    is_billed: Optional[bool] = None
    is_paid: Optional[bool] = None

    @field_validator("is_billed", "is_paid")
    @classmethod
    def only_set(cls, value: Optional[bool]) -> Optional[bool]:
        if value is False:
            raise ValueError("progress flags can only be set to true")
        return value


class OutboundPaymentPatch(CamelModel):
    is_paid: Optional[bool] = None

    @field_validator("is_paid")
    @classmethod
    def only_set(cls, value: Optional[bool]) -> Optional[bool]:
        if value is False:
            raise ValueError("progress flags can only be set to true")
        return value


class AiDocRequest(CamelModel):
    content: Optional[str] = None
    file_name: Optional[str] = None


class DocumentStatusOut(CamelModel):
    status: str
    message: str


class UploadResult(CamelModel):
    success: bool = True
    url: Optional[str] = None
