"""CRUD helpers for projects and their child collections.

Child collections (construction staff, billing items, outbound payments) are
never diffed. A full update deletes every child row of the project and inserts
the supplied rows again inside the same transaction, so after a successful
call the stored children are exactly the submitted ones. Rows submitted
without an id get one from the store's id factory.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..core.errors import ConflictError, NotFoundError, StoreError
from ..core.ids import IdFactory, new_id
from ..models.billing import BillingItem, OutboundPayment
from ..models.file import ProjectFile
from ..models.project import REMARK_FIELDS, Project
from ..models.staff import ConstructionStaff
from ..services.lifecycle import ProjectStatus, advance

logger = logging.getLogger(__name__)

PROJECT_FIELDS = (
    "estimate_date",
    "order_date",
    "construction_start_date",
    "completion_date",
    "payment_date",
    "title",
    "property_name",
    "payment_method",
    *REMARK_FIELDS,
    "customer_name",
    "customer_zip_code",
    "customer_address",
    "customer_tel",
    "customer_email",
)

STAFF_FIELDS = ("name", "zip_code", "address", "tel", "email")
BILLING_FIELDS = ("name", "amount", "expected_payment_date", "is_billed", "is_paid")
OUTBOUND_FIELDS = ("recipient", "amount", "expected_date", "is_paid")


def _with_children():
    return (
        selectinload(Project.construction_staff),
        selectinload(Project.billing_items),
        selectinload(Project.outbound_payments),
    )


def list_projects(db: Session) -> Sequence[Project]:
    stmt = select(Project).options(*_with_children()).order_by(Project.estimate_date, Project.id)
    return db.execute(stmt).scalars().all()


def get_project(db: Session, project_id: str, *, include_files: bool = False) -> Project | None:
    options = list(_with_children())
    if include_files:
        options.append(selectinload(Project.files))
    stmt = select(Project).options(*options).where(Project.id == project_id)
    return db.execute(stmt).scalars().first()


def _child_rows(
    project_id: str,
    items: Iterable[dict[str, Any]] | None,
    fields: Sequence[str],
    new_id: IdFactory,
    *,
    reset_flags: bool = False,
) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for item in items or ():
        row = {field: item.get(field) for field in fields}
        row["id"] = item.get("id") or new_id()
        row["project_id"] = project_id
        for flag in ("is_billed", "is_paid"):
            if flag in fields:
                row[flag] = False if reset_flags else bool(row.get(flag))
        rows.append(row)
    return rows


def _insert_children(
    db: Session,
    project_id: str,
    *,
    staff: Iterable[dict[str, Any]] | None,
    billing: Iterable[dict[str, Any]] | None,
    outbound: Iterable[dict[str, Any]] | None,
    new_id: IdFactory,
    reset_flags: bool = False,
) -> None:
    for model, items, fields in (
        (ConstructionStaff, staff, STAFF_FIELDS),
        (BillingItem, billing, BILLING_FIELDS),
        (OutboundPayment, outbound, OUTBOUND_FIELDS),
    ):
        rows = _child_rows(project_id, items, fields, new_id, reset_flags=reset_flags)
        if rows:
            db.execute(insert(model), rows)


def replace_children(
    db: Session,
    project_id: str,
    *,
    staff: Iterable[dict[str, Any]] | None,
    billing: Iterable[dict[str, Any]] | None,
    outbound: Iterable[dict[str, Any]] | None,
    new_id: IdFactory = new_id,
) -> None:
    """Swap every child collection of ``project_id`` for the supplied rows.

    Runs inside the caller's transaction and does not commit.
    """

    for model in (ConstructionStaff, BillingItem, OutboundPayment):
        db.execute(delete(model).where(model.project_id == project_id))
    _insert_children(db, project_id, staff=staff, billing=billing, outbound=outbound, new_id=new_id)


def _rollback(db: Session, action: str, project_id: str, exc: Exception) -> StoreError:
    db.rollback()
    logger.exception(
        "project.%s_failed",
        action,
        extra={"extra_data": {"project_id": project_id, "error": str(exc)}},
    )
    return StoreError(f"Failed to {action} project")


def create_project(db: Session, payload: dict[str, Any], *, new_id: IdFactory = new_id) -> Project:
    project_id = payload["id"]
    if db.get(Project, project_id) is not None:
        raise ConflictError(f"Project {project_id} already exists")
    project = Project(id=project_id, **{field: payload.get(field) for field in PROJECT_FIELDS})
    advance(project, payload.get("status") or ProjectStatus.ESTIMATE)
    try:
        db.add(project)
        db.flush()
        _insert_children(
            db,
            project_id,
            staff=payload.get("construction_staff"),
            billing=payload.get("billing_items"),
            outbound=payload.get("outbound_payments"),
            new_id=new_id,
            reset_flags=True,
        )
        db.commit()
    except SQLAlchemyError as exc:
        raise _rollback(db, "create", project_id, exc) from exc
    logger.info("project.created", extra={"extra_data": {"project_id": project_id}})
    return project


def update_project(
    db: Session, project_id: str, payload: dict[str, Any], *, new_id: IdFactory = new_id
) -> Project:
    """Full replace: every project field plus all three child collections."""

    project = db.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project not found")
    try:
        for field in PROJECT_FIELDS:
            setattr(project, field, payload.get(field))
        advance(project, payload["status"])
        db.flush()
        replace_children(
            db,
            project_id,
            staff=payload.get("construction_staff"),
            billing=payload.get("billing_items"),
            outbound=payload.get("outbound_payments"),
            new_id=new_id,
        )
        db.commit()
    except SQLAlchemyError as exc:
        raise _rollback(db, "update", project_id, exc) from exc
    logger.info("project.updated", extra={"extra_data": {"project_id": project_id}})
    return project


def patch_project(db: Session, project_id: str, changes: dict[str, Any]) -> Project:
    """Apply a status change and/or remark edits without touching children."""

    project = db.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project not found")
    if "status" in changes:
        advance(project, changes["status"])
    for field in REMARK_FIELDS:
        if field in changes:
            setattr(project, field, changes[field])
    try:
        db.commit()
    except SQLAlchemyError as exc:
        raise _rollback(db, "patch", project_id, exc) from exc
    return project


def delete_project(db: Session, project_id: str) -> list[str]:
    """Delete a project; children and file rows go with it through the FK cascade.

    Returns the stored names of the project's uploads so the caller can remove
    the bytes. Deleting an unknown id is a no-op.
    """

    stored = [
        record.stored_name
        for record in db.execute(select(ProjectFile).where(ProjectFile.project_id == project_id)).scalars()
    ]
    try:
        result = db.execute(delete(Project).where(Project.id == project_id))
        db.commit()
    except SQLAlchemyError as exc:
        raise _rollback(db, "delete", project_id, exc) from exc
    if result.rowcount:
        logger.info("project.deleted", extra={"extra_data": {"project_id": project_id}})
    return stored
