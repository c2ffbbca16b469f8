"""Project workflow statuses and the rules for moving between them.

Statuses run ``ESTIMATE -> ORDER -> CONSTRUCTION -> BILLING -> PAYMENT_IN ->
PAYMENT_OUT``. ``CANCELLED`` sits beside that sequence and can be entered from
anywhere. :func:`advance` performs no ordering check; any status may follow
any other.

The only automatic transition is :func:`auto_advance_on_full_billing`, which
moves a ``BILLING`` project to ``PAYMENT_IN`` once every billing item has been
billed.
"""

from __future__ import annotations

import logging
from enum import Enum

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models.billing import BillingItem
from ..models.project import Project

logger = logging.getLogger(__name__)


class ProjectStatus(str, Enum):
    # Values are the labels stored in the database and shown by the front end.
    ESTIMATE = "見積"
    ORDER = "発注"
    CONSTRUCTION = "施工"
    BILLING = "請求"
    PAYMENT_IN = "入金"
    PAYMENT_OUT = "支払い"
    CANCELLED = "キャンセル案件"


PROGRESS_STEPS: tuple[ProjectStatus, ...] = (
    ProjectStatus.ESTIMATE,
    ProjectStatus.ORDER,
    ProjectStatus.CONSTRUCTION,
    ProjectStatus.BILLING,
    ProjectStatus.PAYMENT_IN,
    ProjectStatus.PAYMENT_OUT,
)

# Which milestone date places a project on the calendar while it sits in a status.
MILESTONE_FIELDS: dict[ProjectStatus, str] = {
    ProjectStatus.ESTIMATE: "estimate_date",
    ProjectStatus.ORDER: "order_date",
    ProjectStatus.CONSTRUCTION: "construction_start_date",
    ProjectStatus.BILLING: "completion_date",
    ProjectStatus.PAYMENT_IN: "completion_date",
    ProjectStatus.PAYMENT_OUT: "completion_date",
}


def coerce_status(value: ProjectStatus | str) -> ProjectStatus:
    """Accept an enum member or its stored label; raise ``ValueError`` otherwise."""

    if isinstance(value, ProjectStatus):
        return value
    return ProjectStatus(value)


def next_status(status: ProjectStatus | str) -> ProjectStatus | None:
    current = coerce_status(status)
    if current not in PROGRESS_STEPS:
        return None
    index = PROGRESS_STEPS.index(current)
    if index + 1 >= len(PROGRESS_STEPS):
        return None
    return PROGRESS_STEPS[index + 1]


def milestone_field(status: ProjectStatus | str) -> str | None:
    return MILESTONE_FIELDS.get(coerce_status(status))


def advance(project: Project, target: ProjectStatus | str) -> Project:
    """Set ``project.status`` to ``target`` regardless of the current status."""

    new_status = coerce_status(target)
    previous = project.status
    project.status = new_status.value
    if previous != project.status:
        logger.info(
            "project.status_changed",
            extra={"extra_data": {"project_id": project.id, "from": previous, "to": project.status}},
        )
    return project


def cancel(project: Project) -> Project:
    return advance(project, ProjectStatus.CANCELLED)


def reopen(project: Project) -> Project:
    return advance(project, ProjectStatus.ESTIMATE)


def auto_advance_on_full_billing(db: Session, project: Project) -> bool:
    """Move a ``BILLING`` project to ``PAYMENT_IN`` when all its items are billed.

    Reads the project's billing items from the session so flags flushed
    earlier in the same transaction are taken into account. Returns ``True``
    when the status changed. The caller owns the commit.
    """

    if project.status != ProjectStatus.BILLING.value:
        return False
    db.flush()
    flags = db.execute(
        select(BillingItem.is_billed).where(BillingItem.project_id == project.id)
    ).scalars().all()
    if not all(flags):
        return False
    advance(project, ProjectStatus.PAYMENT_IN)
    return True


__all__ = [
    "MILESTONE_FIELDS",
    "PROGRESS_STEPS",
    "ProjectStatus",
    "advance",
    "auto_advance_on_full_billing",
    "cancel",
    "coerce_status",
    "milestone_field",
    "next_status",
    "reopen",
]
