"""Tests for project status transitions."""

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from renovaflow.crud.projects import create_project, get_project
from renovaflow.db.session import Store
from renovaflow.models.project import Project
from renovaflow.services.lifecycle import (
    PROGRESS_STEPS,
    ProjectStatus,
    advance,
    auto_advance_on_full_billing,
    cancel,
    milestone_field,
    next_status,
    reopen,
)


@pytest.fixture()
def db_session():
    store = Store("sqlite://")
    store.create_all()
    session = store.session()
    try:
        yield session
    finally:
        session.close()
        store.dispose()


def _project(**overrides):
    payload = {
        "id": "P1",
        "status": ProjectStatus.ESTIMATE,
        "estimate_date": "2024-04-01",
        "completion_date": "2024-06-30",
        "title": "Kitchen remodel",
    }
    payload.update(overrides)
    return payload


@pytest.mark.parametrize("current", list(ProjectStatus))
@pytest.mark.parametrize("target", list(ProjectStatus))
def test_advance_accepts_any_transition(current, target):
    project = Project(id="P1", status=current.value)
    advance(project, target)
    assert project.status == target.value


def test_advance_accepts_stored_labels():
    project = Project(id="P1", status=ProjectStatus.PAYMENT_OUT.value)
    advance(project, "見積")
    assert project.status == ProjectStatus.ESTIMATE.value


def test_advance_rejects_unknown_status():
    project = Project(id="P1", status=ProjectStatus.ESTIMATE.value)
    with pytest.raises(ValueError):
        advance(project, "done")
    assert project.status == ProjectStatus.ESTIMATE.value


def test_cancel_and_reopen():
    project = Project(id="P1", status=ProjectStatus.CONSTRUCTION.value)
    cancel(project)
    assert project.status == ProjectStatus.CANCELLED.value
    reopen(project)
    assert project.status == ProjectStatus.ESTIMATE.value


def test_progress_helpers():
    assert PROGRESS_STEPS[0] is ProjectStatus.ESTIMATE
    assert ProjectStatus.CANCELLED not in PROGRESS_STEPS
    assert next_status(ProjectStatus.BILLING) is ProjectStatus.PAYMENT_IN
    assert next_status(ProjectStatus.PAYMENT_OUT) is None
    assert next_status(ProjectStatus.CANCELLED) is None
    assert milestone_field(ProjectStatus.ORDER) == "order_date"
    assert milestone_field(ProjectStatus.CANCELLED) is None


def test_auto_advance_requires_every_item_billed(db_session):
    create_project(
        db_session,
        _project(
            status=ProjectStatus.BILLING,
            billing_items=[{"id": "B1", "name": "Deposit"}, {"id": "B2", "name": "Balance"}],
        ),
    )
    project = get_project(db_session, "P1")
    items = {item.id: item for item in project.billing_items}
    items["B1"].is_billed = True
    assert auto_advance_on_full_billing(db_session, project) is False
    assert project.status == ProjectStatus.BILLING.value

    items["B2"].is_billed = True
    assert auto_advance_on_full_billing(db_session, project) is True
    assert project.status == ProjectStatus.PAYMENT_IN.value


def test_auto_advance_ignores_other_statuses(db_session):
    create_project(
        db_session,
        _project(status=ProjectStatus.CONSTRUCTION, billing_items=[{"id": "B1", "name": "Deposit"}]),
    )
    project = get_project(db_session, "P1")
    project.billing_items[0].is_billed = True
    assert auto_advance_on_full_billing(db_session, project) is False
    assert project.status == ProjectStatus.CONSTRUCTION.value
