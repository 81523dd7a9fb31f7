"""Tests for the application status workflow."""

import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from portal.engine.locks import KeyedLock
from portal.engine.workflow import WorkflowService, parse_status
from portal.errors import (
    ConflictError,
    InvalidStatusError,
    NotFoundError,
    PersistenceFailure,
)
from portal.models import Application, ApplicationStatus, FounderProfile, StatusHistory
from portal.storage import repositories
from portal.utils.timestamps import ensure_utc, utcnow
from tests.conftest import make_submission


def assert_chain(history_newest_first):
    """Oldest-first, each entry continues from the previous one's target."""
    entries = list(reversed(history_newest_first))
    assert entries[0].from_status is None
    for prev, entry in zip(entries, entries[1:]):
        assert entry.from_status == prev.to_status


async def count(sessions, model) -> int:
    async with sessions() as db:
        return (await db.execute(select(func.count()).select_from(model))).scalar_one()


def test_parse_status_accepts_known_values():
    assert parse_status("SHORTLISTED") is ApplicationStatus.SHORTLISTED


@pytest.mark.parametrize("value", ["shortlisted", "ACCEPTED", "", None, 3])
def test_parse_status_rejects_unknown_values(value):
    with pytest.raises(InvalidStatusError):
        parse_status(value)


async def test_submit_seeds_history(workflow, application_id):
    view = await workflow.current_status(application_id)
    assert view.current_status == "APPLIED"
    assert len(view.status_history) == 1
    seed = view.status_history[0]
    assert seed.from_status is None
    assert seed.to_status == "APPLIED"
    assert view.status_updated_at == view.created_at


async def test_submit_twice_for_same_founder_conflicts(workflow, sessions, application_id):
    with pytest.raises(ConflictError):
        await workflow.submit(make_submission(email="  ADA@example.com ", startup_name="Other"))
    assert await count(sessions, Application) == 1
    assert await count(sessions, FounderProfile) == 1
    assert await count(sessions, StatusHistory) == 1


async def test_submit_different_founders(workflow, sessions):
    first = await workflow.submit(make_submission(email="a@example.com"))
    second = await workflow.submit(make_submission(email="b@example.com"))
    assert first != second
    assert await count(sessions, Application) == 2


async def test_transition_updates_status_and_ledger(workflow, application_id):
    result = await workflow.transition(application_id, "SHORTLISTED")
    assert result.application_id == application_id
    assert result.status == "SHORTLISTED"

    view = await workflow.current_status(application_id)
    assert view.current_status == "SHORTLISTED"
    assert view.status_updated_at == result.status_updated_at
    latest = view.status_history[0]
    assert latest.from_status == "APPLIED"
    assert latest.to_status == "SHORTLISTED"


async def test_history_forms_chain(workflow, application_id):
    for status in ["SHORTLISTED", "REJECTED", "APPLIED", "SELECTED"]:
        await workflow.transition(application_id, status)
    view = await workflow.current_status(application_id)
    assert [e.to_status for e in view.status_history] == [
        "SELECTED",
        "APPLIED",
        "REJECTED",
        "SHORTLISTED",
        "APPLIED",
    ]
    assert_chain(view.status_history)
    stamps = [e.created_at for e in reversed(view.status_history)]
    assert stamps == sorted(stamps)


async def test_self_transition_still_recorded(workflow, application_id):
    await workflow.transition(application_id, "APPLIED")
    view = await workflow.current_status(application_id)
    assert len(view.status_history) == 2
    assert view.status_history[0].from_status == "APPLIED"
    assert view.status_history[0].to_status == "APPLIED"


async def test_transition_unknown_application(workflow, sessions, application_id):
    with pytest.raises(NotFoundError):
        await workflow.transition("does-not-exist", "SELECTED")
    assert await count(sessions, StatusHistory) == 1


async def test_invalid_status_checked_before_existence(workflow, sessions, application_id):
    with pytest.raises(InvalidStatusError):
        await workflow.transition("does-not-exist", "HIRED")
    with pytest.raises(InvalidStatusError):
        await workflow.transition(application_id, "HIRED")
    view = await workflow.current_status(application_id)
    assert view.current_status == "APPLIED"
    assert await count(sessions, StatusHistory) == 1


async def test_current_status_unknown_application(workflow):
    with pytest.raises(NotFoundError):
        await workflow.current_status("does-not-exist")


async def test_status_timestamp_never_moves_backwards(workflow, sessions, application_id):
    future = utcnow() + timedelta(hours=1)
    async with sessions() as db, db.begin():
        app = await db.get(Application, application_id)
        app.status_updated_at = future

    result = await workflow.transition(application_id, "SHORTLISTED")
    assert result.status_updated_at >= future


async def test_concurrent_transitions_keep_chain(workflow, application_id):
    targets = ["SHORTLISTED", "REJECTED", "SELECTED", "APPLIED", "SHORTLISTED"]
    await asyncio.gather(*(workflow.transition(application_id, s) for s in targets))
    view = await workflow.current_status(application_id)
    assert len(view.status_history) == len(targets) + 1
    assert_chain(view.status_history)
    assert view.current_status == view.status_history[0].to_status


async def test_stale_write_from_another_process_conflicts(
    workflow, sessions, application_id, monkeypatch
):
    # A second service with its own lock registry stands in for another process.
    rival = WorkflowService(sessions, locks=KeyedLock())
    original = repositories.get_application
    raced = False

    async def racing_get(db, app_id, for_update=False):
        nonlocal raced
        app = await original(db, app_id, for_update=for_update)
        if for_update and not raced:
            raced = True
            await rival.transition(app_id, "REJECTED")
        return app

    monkeypatch.setattr(repositories, "get_application", racing_get)

    with pytest.raises(ConflictError):
        await workflow.transition(application_id, "SELECTED")

    view = await workflow.current_status(application_id)
    assert view.current_status == "REJECTED"
    assert len(view.status_history) == 2
    assert_chain(view.status_history)


async def test_persistence_failure_rolls_back_transition(
    workflow, sessions, application_id, monkeypatch
):
    async def broken_append(*args, **kwargs):
        raise OperationalError("INSERT INTO status_history", {}, Exception("disk I/O error"))

    monkeypatch.setattr(repositories, "append_history", broken_append)

    with pytest.raises(PersistenceFailure):
        await workflow.transition(application_id, "SELECTED")

    monkeypatch.undo()
    view = await workflow.current_status(application_id)
    assert view.current_status == "APPLIED"
    assert len(view.status_history) == 1


async def test_persistence_failure_rolls_back_submit(workflow, sessions, monkeypatch):
    async def broken_append(*args, **kwargs):
        raise OperationalError("INSERT INTO status_history", {}, Exception("disk I/O error"))

    monkeypatch.setattr(repositories, "append_history", broken_append)

    with pytest.raises(PersistenceFailure):
        await workflow.submit(make_submission())
    assert await count(sessions, Application) == 0
    assert await count(sessions, FounderProfile) == 0


async def test_list_applications(workflow):
    first = await workflow.submit(make_submission(email="a@example.com", startup_name="Alpha"))
    second = await workflow.submit(make_submission(email="b@example.com", startup_name="Beta"))
    await workflow.transition(second, "SHORTLISTED")

    apps = {a.id: a for a in await workflow.list_applications()}
    assert set(apps) == {first, second}
    assert apps[first].startup_name == "Alpha"
    assert apps[first].email == "a@example.com"
    assert [e.to_status for e in apps[second].status_history] == ["SHORTLISTED", "APPLIED"]


async def test_applications_for_founder(workflow, application_id):
    apps = await workflow.applications_for_founder("Ada@Example.com")
    assert [a.id for a in apps] == [application_id]
    assert apps[0].founder_name == "Ada Founder"
    assert apps[0].tech_stack == "Python,FastAPI"

    with pytest.raises(NotFoundError):
        await workflow.applications_for_founder("nobody@example.com")


async def test_timestamps_are_utc(workflow, application_id):
    view = await workflow.current_status(application_id)
    assert view.created_at.utcoffset() == timedelta(0)
    assert ensure_utc(view.status_history[0].created_at) == view.status_history[0].created_at


async def test_application_views_include_evaluations(workflow, aggregator, application_id):
    await aggregator.record_evaluation(application_id, "r1", 8, "Clear market")
    await aggregator.record_evaluation(application_id, "r2", 5, "Thin moat")

    for apps in (
        await workflow.list_applications(),
        await workflow.applications_for_founder("ada@example.com"),
    ):
        evaluations = apps[0].evaluations
        assert [(e.reviewer_id, e.score, e.feedback) for e in evaluations] == [
            ("r1", 8, "Clear market"),
            ("r2", 5, "Thin moat"),
        ]
        assert all(e.id for e in evaluations)


async def test_application_views_without_evaluations(workflow, application_id):
    apps = await workflow.list_applications()
    assert apps[0].evaluations == []


@pytest.mark.parametrize(
    "repository_fn, call",
    [
        ("list_history", lambda wf, app_id: wf.current_status(app_id)),
        ("list_history_for", lambda wf, app_id: wf.list_applications()),
        ("list_evaluations_for", lambda wf, app_id: wf.applications_for_founder("ada@example.com")),
    ],
)
async def test_read_store_failure(workflow, application_id, monkeypatch, repository_fn, call):
    async def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection reset"))

    monkeypatch.setattr(repositories, repository_fn, broken)
    with pytest.raises(PersistenceFailure):
        await call(workflow, application_id)
