"""Tests for project CRUD and the child-collection replacement."""

import itertools
import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import select

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from renovaflow.core.errors import ConflictError, NotFoundError, StoreError
from renovaflow.crud.projects import (
    create_project,
    delete_project,
    get_project,
    list_projects,
    patch_project,
    update_project,
)
from renovaflow.db.session import Store
from renovaflow.models.billing import BillingItem, OutboundPayment
from renovaflow.models.file import ProjectFile
from renovaflow.models.staff import ConstructionStaff
from renovaflow.services.lifecycle import ProjectStatus


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


def _payload(**overrides):
    payload = {
        "id": "P1",
        "status": ProjectStatus.ESTIMATE,
        "estimate_date": "2024-04-01",
        "completion_date": "2024-06-30",
        "title": "Bathroom refit",
        "property_name": "Maple Court 302",
        "customer_name": "Sato",
        "construction_staff": [],
        "billing_items": [],
        "outbound_payments": [],
    }
    payload.update(overrides)
    return payload


def _sequential_ids():
    counter = itertools.count(1)
    return lambda: f"gen-{next(counter)}"


def test_create_project_seeds_children_with_clear_flags(db_session):
    create_project(
        db_session,
        _payload(
            construction_staff=[{"id": "S1", "name": "Tanaka Plumbing", "tel": "03-0000-0000"}],
            billing_items=[{"id": "B1", "name": "Deposit", "amount": 50000, "is_billed": True, "is_paid": True}],
            outbound_payments=[{"recipient": "Tile supplier", "amount": 12000}],
        ),
        new_id=_sequential_ids(),
    )

    project = get_project(db_session, "P1")
    assert project.status == ProjectStatus.ESTIMATE.value
    assert [s.name for s in project.construction_staff] == ["Tanaka Plumbing"]
    billing = project.billing_items[0]
    assert (billing.is_billed, billing.is_paid) == (False, False)
    assert project.outbound_payments[0].id == "gen-1"
    assert project.outbound_payments[0].is_paid is False


def test_create_project_rejects_duplicate_id(db_session):
    create_project(db_session, _payload())
    with pytest.raises(ConflictError):
        create_project(db_session, _payload(title="Other"))
    assert get_project(db_session, "P1").title == "Bathroom refit"


def test_replacements_leave_exactly_the_latest_children(db_session):
    create_project(
        db_session,
        _payload(
            construction_staff=[{"id": "S1", "name": "A"}, {"id": "S2", "name": "B"}],
            billing_items=[{"id": "B1", "name": "Deposit", "amount": 100}],
        ),
    )
    versions = [
        {
            "construction_staff": [{"id": "S2", "name": "B"}, {"name": "C"}],
            "billing_items": [{"id": "B1", "name": "Deposit", "amount": 100, "is_billed": True}],
            "outbound_payments": [{"recipient": "Carpenter", "amount": 30}],
        },
        {
            "construction_staff": [{"name": "D"}],
            "billing_items": [],
            "outbound_payments": [{"recipient": "Painter", "amount": 45}, {"recipient": "Electrician", "amount": 60}],
        },
        {
            "construction_staff": [],
            "billing_items": [{"name": "Final", "amount": 900}],
            "outbound_payments": [],
        },
    ]
    for version in versions:
        update_project(db_session, "P1", _payload(**version), new_id=_sequential_ids())
        db_session.expire_all()
        staff = db_session.execute(
            select(ConstructionStaff.name).where(ConstructionStaff.project_id == "P1")
        ).scalars().all()
        billing = db_session.execute(
            select(BillingItem.name, BillingItem.is_billed).where(BillingItem.project_id == "P1")
        ).all()
        outbound = db_session.execute(
            select(OutboundPayment.recipient).where(OutboundPayment.project_id == "P1")
        ).scalars().all()
        assert sorted(staff) == sorted(s["name"] for s in version["construction_staff"])
        assert sorted(b.name for b in billing) == sorted(b["name"] for b in version["billing_items"])
        assert sorted(outbound) == sorted(p["recipient"] for p in version["outbound_payments"])

    final = get_project(db_session, "P1")
    assert final.billing_items[0].id == "gen-1"


def test_replace_keeps_echoed_ids_and_flags(db_session):
    create_project(db_session, _payload(billing_items=[{"id": "B1", "name": "Deposit"}]))
    update_project(
        db_session,
        "P1",
        _payload(billing_items=[{"id": "B1", "name": "Deposit", "is_billed": True, "is_paid": False}]),
    )
    item = db_session.get(BillingItem, "B1")
    assert item.is_billed is True
    assert item.is_paid is False


def test_full_update_with_no_staff_clears_staff(db_session):
    create_project(
        db_session,
        _payload(construction_staff=[{"id": "S1", "name": "A"}, {"id": "S2", "name": "B"}]),
    )
    update_project(db_session, "P1", _payload(title="Bathroom refit v2", construction_staff=[]))

    project = get_project(db_session, "P1")
    assert project.title == "Bathroom refit v2"
    assert project.construction_staff == []


def test_failed_replacement_rolls_back(db_session):
    create_project(
        db_session,
        _payload(billing_items=[{"id": "B1", "name": "Deposit"}, {"id": "B2", "name": "Balance"}]),
    )
    with pytest.raises(StoreError):
        update_project(
            db_session,
            "P1",
            _payload(
                title="Should not stick",
                billing_items=[{"id": "DUP", "name": "One"}, {"id": "DUP", "name": "Two"}],
            ),
        )

    project = get_project(db_session, "P1")
    assert project.title == "Bathroom refit"
    assert sorted(item.id for item in project.billing_items) == ["B1", "B2"]


def test_update_missing_project_is_not_found(db_session):
    with pytest.raises(NotFoundError):
        update_project(db_session, "missing", _payload(id="missing"))


def test_patch_sets_status_and_remarks_only(db_session):
    create_project(db_session, _payload(estimate_remarks="first visit", order_remarks="keep"))
    patch_project(db_session, "P1", {"status": ProjectStatus.ORDER, "estimate_remarks": "sent quote"})

    project = get_project(db_session, "P1")
    assert project.status == ProjectStatus.ORDER.value
    assert project.estimate_remarks == "sent quote"
    assert project.order_remarks == "keep"
    assert project.title == "Bathroom refit"


def test_patch_missing_project_is_not_found(db_session):
    with pytest.raises(NotFoundError):
        patch_project(db_session, "missing", {"status": ProjectStatus.ORDER})


def test_delete_project_cascades_to_children_and_files(db_session):
    create_project(
        db_session,
        _payload(
            construction_staff=[{"id": "S1", "name": "A"}],
            billing_items=[{"id": "B1", "name": "Deposit"}],
            outbound_payments=[{"id": "O1", "recipient": "Supplier"}],
        ),
    )
    db_session.add(ProjectFile(id="F1", project_id="P1", name="plan.pdf", url="/uploads/F1-plan.pdf"))
    db_session.commit()

    stored = delete_project(db_session, "P1")

    assert stored == ["F1-plan.pdf"]
    assert get_project(db_session, "P1") is None
    for model in (ConstructionStaff, BillingItem, OutboundPayment, ProjectFile):
        assert db_session.execute(select(model)).scalars().all() == []


def test_delete_unknown_project_is_noop(db_session):
    assert delete_project(db_session, "missing") == []


def test_list_projects_inlines_children(db_session):
    create_project(db_session, _payload(id="P1", billing_items=[{"id": "B1", "name": "Deposit"}]))
    create_project(db_session, _payload(id="P2", estimate_date="2024-03-01"))

    projects = list_projects(db_session)
    assert [p.id for p in projects] == ["P2", "P1"]
    assert [b.id for b in projects[1].billing_items] == ["B1"]
