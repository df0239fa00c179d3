import asyncio

import pytest

from app.models.user import UserStatus
from app.schemas.employee_import import ImportErrorCode
from app.services.attempt_store import AttemptStore
from app.services.employee_import import ImportStage, ResolutionError
from app.services.employee_import_service import (
    COMMIT_INTERRUPTED_REASON,
    FILE_UNREADABLE_REASON,
    ROSTER_UNAVAILABLE_REASON,
    EmployeeImportService,
    ImportAlreadyCommitted,
    ImportAttemptNotFound,
)
from tests.fakes import InMemoryRosterGateway, roster_entry

pytestmark = pytest.mark.unit


def _service(gateway, attempt_store):
    return EmployeeImportService(gateway, store=attempt_store, short_id_length=6)


def test_run_import_resolves_conflicts_by_default(attempt_store):
    existing = roster_entry("a@x.com", "000001")
    gateway = InMemoryRosterGateway([existing])
    rows = [{"Nome Completo": "A2", "Email": "a@x.com"}, {"Nome Completo": "B", "Email": "b@x.com"}]

    report = asyncio.run(_service(gateway, attempt_store).run_import(rows))

    assert (report.imported, report.deactivated, report.skipped, report.errors) == (2, 1, 0, 0)
    assert len(report.created_ids) == 2
    assert len(attempt_store) == 0


def test_run_import_applies_operator_decisions(attempt_store):
    existing = roster_entry("a@x.com", "000001")
    gateway = InMemoryRosterGateway([existing])

    report = asyncio.run(
        _service(gateway, attempt_store).run_import(
            [{"Nome Completo": "A2", "Email": "a@x.com"}],
            decide=lambda session: session.set_decision(0, False),
        )
    )

    assert report.skipped == 1
    assert gateway.get(existing.id).status == UserStatus.ACTIVE


def test_run_import_never_raises(attempt_store):
    gateway = InMemoryRosterGateway([roster_entry("a@x.com", "000001")])

    def broken_decision(session):
        session.toggle(5)

    report = asyncio.run(
        _service(gateway, attempt_store).run_import(
            [{"Nome Completo": "A2", "Email": "a@x.com"}], decide=broken_decision
        )
    )

    assert report.errors == 1
    assert report.error_rows[0].row_number == 0
    assert report.error_rows[0].code == ImportErrorCode.FILE_UNREADABLE


def test_unreachable_roster_gives_single_error_report(attempt_store):
    gateway = InMemoryRosterGateway()
    gateway.fail_roster = True

    attempt = asyncio.run(_service(gateway, attempt_store).start_import([{"Nome Completo": "A", "Email": "a@x.com"}]))

    assert attempt.stage == ImportStage.RESULT
    assert attempt.report.errors == 1
    assert attempt.report.error_rows[0].reason == ROSTER_UNAVAILABLE_REASON
    assert "create_many" not in gateway.calls


def test_unreadable_file_halts_before_classification(attempt_store):
    gateway = InMemoryRosterGateway()

    attempt = asyncio.run(_service(gateway, attempt_store).start_import_from_file("lista.xlsx", b"not a zip"))

    assert attempt.stage == ImportStage.RESULT
    assert attempt.classification is None
    assert attempt.report.errors == 1
    assert attempt.report.error_rows[0].reason == FILE_UNREADABLE_REASON
    assert gateway.calls == []


def test_upload_without_conflicts_commits_immediately(attempt_store):
    gateway = InMemoryRosterGateway()
    service = _service(gateway, attempt_store)

    attempt = asyncio.run(service.start_import([{"Nome Completo": "A", "Email": "a@x.com"}]))

    assert attempt.stage == ImportStage.RESULT
    assert attempt.report.imported == 1
    with pytest.raises(ImportAlreadyCommitted):
        asyncio.run(service.commit_import(attempt.id))


def test_conflict_stage_then_commit(attempt_store):
    existing = roster_entry("a@x.com", "000001")
    gateway = InMemoryRosterGateway([existing])
    service = _service(gateway, attempt_store)

    attempt = asyncio.run(service.start_import([{"Nome Completo": "A2", "Email": "a@x.com"}]))

    assert attempt.stage == ImportStage.CONFLICT
    assert gateway.calls == ["load_active_roster"]
    assert service.toggle_decision(attempt.id, 0) is False
    service.set_decision(attempt.id, 0, True)

    report = asyncio.run(service.commit_import(attempt.id))

    assert (report.imported, report.deactivated) == (1, 1)
    assert service.get_attempt(attempt.id).stage == ImportStage.RESULT
    with pytest.raises(ImportAlreadyCommitted):
        service.toggle_decision(attempt.id, 0)
    with pytest.raises(ImportAlreadyCommitted):
        asyncio.run(service.commit_import(attempt.id))


def test_bad_conflict_index(attempt_store):
    gateway = InMemoryRosterGateway([roster_entry("a@x.com", "000001")])
    service = _service(gateway, attempt_store)
    attempt = asyncio.run(service.start_import([{"Nome Completo": "A2", "Email": "a@x.com"}]))

    with pytest.raises(ResolutionError):
        service.toggle_decision(attempt.id, 3)


def test_abandon_writes_nothing(attempt_store):
    existing = roster_entry("a@x.com", "000001")
    gateway = InMemoryRosterGateway([existing])
    service = _service(gateway, attempt_store)
    attempt = asyncio.run(service.start_import([{"Nome Completo": "A2", "Email": "a@x.com"}]))

    service.abandon(attempt.id)

    assert gateway.calls == ["load_active_roster"]
    assert gateway.get(existing.id).status == UserStatus.ACTIVE
    with pytest.raises(ImportAttemptNotFound):
        service.get_attempt(attempt.id)


def test_expired_attempt_is_gone(gateway):
    store = AttemptStore(ttl_minutes=0)
    service = EmployeeImportService(gateway, store=store, short_id_length=6)

    attempt = asyncio.run(service.start_import([{"Nome Completo": "A", "Email": "a@x.com"}]))

    with pytest.raises(ImportAttemptNotFound):
        service.get_attempt(attempt.id)


def test_run_import_of_nothing_is_all_zero(attempt_store):
    gateway = InMemoryRosterGateway([roster_entry("a@x.com", "000001")])

    report = asyncio.run(_service(gateway, attempt_store).run_import([]))

    assert (report.imported, report.deactivated, report.skipped, report.errors) == (0, 0, 0, 0)
    assert "create_many" not in gateway.calls


def test_start_import_of_nothing_goes_straight_to_result(attempt_store):
    gateway = InMemoryRosterGateway()
    service = _service(gateway, attempt_store)

    attempt = asyncio.run(service.start_import([]))
    header_only = asyncio.run(service.start_import_from_file("lista.csv", b"Nome Completo,Email\n"))

    for result in (attempt, header_only):
        report = result.report
        assert result.stage == ImportStage.RESULT
        assert (report.imported, report.deactivated, report.skipped, report.errors) == (0, 0, 0, 0)
    assert "create_many" not in gateway.calls


class BrokenStoreGateway(InMemoryRosterGateway):
    async def create_many(self, candidates):
        raise RuntimeError("connection reset")


def test_failure_after_commit_started_is_not_reported_as_unreadable_file(attempt_store):
    existing = roster_entry("a@x.com", "000001")
    gateway = BrokenStoreGateway([existing])

    report = asyncio.run(
        _service(gateway, attempt_store).run_import([{"Nome Completo": "A2", "Email": "a@x.com"}])
    )

    assert report.errors == 1
    assert report.error_rows[0].code == ImportErrorCode.COMMIT_INTERRUPTED
    assert report.error_rows[0].reason == COMMIT_INTERRUPTED_REASON
    # the deactivation that ran before the failure is not undone
    assert gateway.get(existing.id).status == UserStatus.INACTIVE
