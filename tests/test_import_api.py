"""
HTTP tests for the import and payslip routers.

The roster is the in-memory gateway and the acting user is injected through
dependency overrides, so no database is needed.
"""

import asyncio
import io
import uuid
from types import SimpleNamespace

import pytest
from fastapi import UploadFile
from fastapi.testclient import TestClient
from openpyxl import Workbook

from app.core.config import settings
from app.core.dependencies import (
    get_current_user,
    get_employee_import_service,
    get_payslip_batch_service,
    require_staff,
)
from app.errors import AppError
from app.main import app
from app.routers.uploads import read_upload
from app.services.attempt_store import AttemptStore
from app.services.employee_import_service import EmployeeImportService
from app.services.payslip_batch import PayslipOwner, PayslipStorage, classify_payslip_files
from app.services.payslip_batch_service import PayslipBatch, PayslipBatchService
from app.utils.time import utc_today
from tests.fakes import InMemoryRosterGateway, roster_entry

pytestmark = pytest.mark.unit

CPF = "12345678901"
STAFF_USER = SimpleNamespace(id=uuid.uuid4(), name="RH Teste", role="RH", status="ATIVO")


class OfflinePayslipBatchService(PayslipBatchService):
    """Payslip service whose preview needs no database."""

    def __init__(self, store, storage):
        self.db = None
        self.actor = STAFF_USER
        self.store = store
        self.storage = storage

    async def preview(self, files):
        owners = {CPF: PayslipOwner(id=uuid.UUID(int=1), name="Ana", identifier=CPF)}
        classified = classify_payslip_files(
            files,
            owners,
            {(uuid.UUID(int=1), 1, 2026)},
            identifier_length=11,
            min_year=2000,
            today=utc_today(),
            check_pdf=lambda content: content.startswith(b"%PDF"),
        )
        batch = PayslipBatch(expires_at=self.store.new_expiry(), files=classified)
        self.store.put(batch)
        return batch


@pytest.fixture
def roster():
    return InMemoryRosterGateway([roster_entry("a@x.com", "000001", name="Antiga")])


@pytest.fixture
def client(roster, tmp_path):
    import_store = AttemptStore(ttl_minutes=30)
    payslip_store = AttemptStore(ttl_minutes=30)
    app.dependency_overrides[require_staff] = lambda: STAFF_USER
    app.dependency_overrides[get_employee_import_service] = lambda: EmployeeImportService(
        roster, store=import_store, short_id_length=6
    )
    app.dependency_overrides[get_payslip_batch_service] = lambda: OfflinePayslipBatchService(
        payslip_store, PayslipStorage(str(tmp_path))
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


def _csv(text):
    return {"file": ("funcionarios.csv", text.encode("utf-8"), "text/csv")}


def test_template_download(client):
    response = client.get("/employees/import/template")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.text.splitlines()[0].startswith("Nome Completo,Email,Matrícula")


def test_upload_with_conflict_then_commit(client, roster):
    response = client.post(
        "/employees/import",
        files=_csv("Nome Completo,Email\nNova,a@x.com\nOutra,b@x.com\n"),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["stage"] == "conflict"
    assert body["total_rows"] == 2
    assert body["valid_count"] == 1
    conflict = body["conflicts"][0]
    assert conflict["existing_name"] == "Antiga"
    assert conflict["matched_on"] == "email"
    assert conflict["resolve"] is True
    assert roster.calls == ["load_active_roster"]

    attempt_id = body["attempt_id"]
    toggled = client.post(f"/employees/import/{attempt_id}/conflicts/0/toggle").json()
    assert toggled["conflicts"][0]["resolve"] is False
    patched = client.patch(f"/employees/import/{attempt_id}/conflicts/0", json={"resolve": True}).json()
    assert patched["conflicts"][0]["resolve"] is True

    report = client.post(f"/employees/import/{attempt_id}/commit").json()
    assert (report["imported"], report["deactivated"], report["skipped"], report["errors"]) == (2, 1, 0, 0)

    again = client.post(f"/employees/import/{attempt_id}/commit")
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "IMPORT_ALREADY_COMMITTED"


def test_upload_without_conflicts_returns_report(client):
    response = client.post(
        "/employees/import",
        files=_csv("Nome Completo,Email\nNova,n@x.com\nSem email,\n"),
    )

    body = response.json()
    assert body["stage"] == "result"
    assert body["report"]["imported"] == 1
    assert body["report"]["errors"] == 1
    assert body["report"]["error_rows"][0]["code"] == "MISSING_FIELD"


def test_upload_xlsx(client):
    workbook = Workbook()
    workbook.active.append(["Nome Completo", "Email", "Matrícula"])
    workbook.active.append(["Planilha", "p@x.com", 42])
    buffer = io.BytesIO()
    workbook.save(buffer)

    response = client.post(
        "/employees/import",
        files={"file": ("lista.xlsx", buffer.getvalue(), "application/octet-stream")},
    )

    body = response.json()
    assert body["stage"] == "result"
    # 42 is not a six-digit matricula
    assert body["report"]["error_rows"][0]["code"] == "INVALID_SHORT_ID"


def test_unreadable_file_gives_single_error_report(client):
    response = client.post(
        "/employees/import",
        files={"file": ("lista.xlsx", b"garbage", "application/octet-stream")},
    )

    report = response.json()["report"]
    assert report["errors"] == 1
    assert report["error_rows"][0]["row_number"] == 0
    assert report["error_rows"][0]["code"] == "FILE_UNREADABLE"


def test_unsupported_extension(client):
    response = client.post("/employees/import", files={"file": ("lista.pdf", b"x", "application/pdf")})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "UNSUPPORTED_FILE_TYPE"


def test_unknown_attempt_and_bad_index(client):
    missing = client.get(f"/employees/import/{uuid.uuid4()}")
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "IMPORT_NOT_FOUND"

    body = client.post("/employees/import", files=_csv("Nome Completo,Email\nNova,a@x.com\n")).json()
    bad = client.post(f"/employees/import/{body['attempt_id']}/conflicts/7/toggle")
    assert bad.status_code == 404
    assert bad.json()["error"]["code"] == "CONFLICT_INDEX_OUT_OF_RANGE"


def test_abandon(client, roster):
    body = client.post("/employees/import", files=_csv("Nome Completo,Email\nNova,a@x.com\n")).json()

    response = client.delete(f"/employees/import/{body['attempt_id']}")

    assert response.status_code == 204
    assert client.get(f"/employees/import/{body['attempt_id']}").status_code == 404
    assert "create_many" not in roster.calls


def test_non_staff_is_forbidden():
    app.dependency_overrides[get_current_user] = lambda: SimpleNamespace(role="Funcionário")
    try:
        response = TestClient(app).get("/employees/import/template")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


def test_missing_user_header_is_unauthenticated():
    response = TestClient(app).get("/employees/import/template")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHENTICATED"


def test_payslip_preview_toggle_and_abandon(client):
    files = [
        ("files", (f"{CPF}-01-2026.pdf", b"%PDF-1.4", "application/pdf")),
        ("files", (f"{CPF}-02-2026.pdf", b"%PDF-1.4", "application/pdf")),
        ("files", ("holerite.pdf", b"%PDF-1.4", "application/pdf")),
    ]

    response = client.post("/payslips/batch", files=files)

    assert response.status_code == 201
    body = response.json()
    assert (body["ready_count"], body["duplicate_count"], body["error_count"]) == (1, 1, 1)
    batch_id = body["batch_id"]

    toggled = client.post(f"/payslips/batch/{batch_id}/files/0/toggle").json()
    assert toggled["files"][0]["replace"] is True

    not_duplicate = client.post(f"/payslips/batch/{batch_id}/files/1/toggle")
    assert not_duplicate.status_code == 400
    assert not_duplicate.json()["error"]["code"] == "INVALID_PAYSLIP_SELECTION"

    assert client.delete(f"/payslips/batch/{batch_id}").status_code == 204
    gone = client.get(f"/payslips/batch/{batch_id}")
    assert gone.status_code == 404
    assert gone.json()["error"]["code"] == "PAYSLIP_BATCH_NOT_FOUND"


def test_oversized_upload_is_rejected(client, monkeypatch):
    monkeypatch.setattr(settings, "IMPORT_MAX_FILE_BYTES", 16)

    response = client.post("/employees/import", files=_csv("Nome Completo,Email\nNova,n@x.com\n"))

    assert response.status_code == 413
    assert response.json()["error"]["code"] == "FILE_TOO_LARGE"


class CountingFile(io.BytesIO):
    def __init__(self, content):
        super().__init__(content)
        self.requested = []

    def read(self, size=-1):
        self.requested.append(size)
        return super().read(size)


def test_read_upload_stops_one_byte_past_the_limit():
    source = CountingFile(b"x" * 100)
    upload = UploadFile(file=source, filename="grande.csv")

    with pytest.raises(AppError) as excinfo:
        asyncio.run(read_upload(upload, max_bytes=10))

    assert excinfo.value.status_code == 413
    assert sum(source.requested) == 11
    assert asyncio.run(read_upload(UploadFile(file=io.BytesIO(b"abc"), filename="a.csv"), max_bytes=3)) == b"abc"
