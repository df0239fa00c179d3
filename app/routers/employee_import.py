"""
Employee import router - bulk employee import endpoints.

Flow: POST a spreadsheet, review conflicts (toggle per row), commit.
When the upload has no conflicts the import is committed immediately and the
response already carries the report.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, File, Response, UploadFile, status

from app.core.config import settings
from app.core.dependencies import get_employee_import_service, require_staff
from app.errors import raise_app_error
from app.routers.uploads import read_upload
from app.schemas.employee_import import (
    ConflictDecisionUpdate,
    ConflictView,
    ImportAttemptRead,
    OutcomeReport,
)
from app.services.employee_import import ResolutionError, template_csv
from app.services.employee_import.spreadsheet import SUPPORTED_EXTENSIONS
from app.services.employee_import_service import (
    EmployeeImportService,
    ImportAlreadyCommitted,
    ImportAttempt,
    ImportAttemptNotFound,
)

router = APIRouter(prefix="/employees/import", tags=["employee-import"])


def _attempt_read(attempt: ImportAttempt) -> ImportAttemptRead:
    classification = attempt.classification
    conflicts = []
    if attempt.session is not None:
        for index, decision in enumerate(attempt.session.decisions()):
            candidate = decision.conflict.candidate
            existing = decision.conflict.existing
            conflicts.append(
                ConflictView(
                    index=index,
                    row_number=candidate.row_number,
                    name=candidate.name,
                    email=candidate.email,
                    short_id=candidate.short_id,
                    short_id_synthesized=candidate.short_id_synthesized,
                    matched_on=decision.conflict.matched_on,
                    existing_id=existing.id,
                    existing_name=existing.name,
                    existing_email=existing.email,
                    existing_short_id=existing.short_id,
                    resolve=decision.resolve,
                )
            )
    return ImportAttemptRead(
        attempt_id=attempt.id,
        stage=attempt.stage.value,
        total_rows=classification.total_rows if classification else 0,
        valid_count=len(classification.valid) if classification else 0,
        error_rows=list(classification.errors) if classification else [],
        conflicts=conflicts,
        report=attempt.report,
        expires_at=attempt.expires_at,
    )


def _raise_for(exc: Exception) -> None:
    if isinstance(exc, ImportAttemptNotFound):
        raise_app_error(status.HTTP_404_NOT_FOUND, "IMPORT_NOT_FOUND", str(exc))
    if isinstance(exc, ImportAlreadyCommitted):
        raise_app_error(status.HTTP_409_CONFLICT, "IMPORT_ALREADY_COMMITTED", str(exc))
    if isinstance(exc, ResolutionError):
        raise_app_error(status.HTTP_404_NOT_FOUND, "CONFLICT_INDEX_OUT_OF_RANGE", str(exc))
    raise exc


@router.get("/template", dependencies=[Depends(require_staff)])
async def download_template():
    """CSV template with the expected column headers."""
    return Response(
        content=template_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="template_importacao.csv"'},
    )


@router.post("", response_model=ImportAttemptRead, status_code=status.HTTP_201_CREATED)
async def upload_import(
    file: UploadFile = File(...),
    service: EmployeeImportService = Depends(get_employee_import_service),
):
    """
    Upload a .csv or .xlsx file and classify its rows.

    Returns stage `conflict` when the operator has decisions to make,
    otherwise stage `result` with the outcome report.
    """
    filename = file.filename or ""
    if not filename.lower().endswith(SUPPORTED_EXTENSIONS):
        raise_app_error(
            status.HTTP_400_BAD_REQUEST,
            "UNSUPPORTED_FILE_TYPE",
            "File must be a .csv or .xlsx spreadsheet",
            {"filename": filename},
        )
    content = await read_upload(file, settings.IMPORT_MAX_FILE_BYTES)

    attempt = await service.start_import_from_file(filename, content)
    return _attempt_read(attempt)


@router.get("/{attempt_id}", response_model=ImportAttemptRead)
async def get_import(
    attempt_id: UUID,
    service: EmployeeImportService = Depends(get_employee_import_service),
):
    """Get an import attempt and its current decisions."""
    try:
        return _attempt_read(service.get_attempt(attempt_id))
    except ImportAttemptNotFound as exc:
        _raise_for(exc)


@router.patch("/{attempt_id}/conflicts/{index}", response_model=ImportAttemptRead)
async def set_conflict_decision(
    attempt_id: UUID,
    index: int,
    data: ConflictDecisionUpdate,
    service: EmployeeImportService = Depends(get_employee_import_service),
):
    """Set whether a conflict is resolved by deactivating the existing user."""
    try:
        service.set_decision(attempt_id, index, data.resolve)
        return _attempt_read(service.get_attempt(attempt_id))
    except (ImportAttemptNotFound, ImportAlreadyCommitted, ResolutionError) as exc:
        _raise_for(exc)


@router.post("/{attempt_id}/conflicts/{index}/toggle", response_model=ImportAttemptRead)
async def toggle_conflict_decision(
    attempt_id: UUID,
    index: int,
    service: EmployeeImportService = Depends(get_employee_import_service),
):
    """Flip one conflict decision."""
    try:
        service.toggle_decision(attempt_id, index)
        return _attempt_read(service.get_attempt(attempt_id))
    except (ImportAttemptNotFound, ImportAlreadyCommitted, ResolutionError) as exc:
        _raise_for(exc)


@router.post("/{attempt_id}/commit", response_model=OutcomeReport)
async def commit_import(
    attempt_id: UUID,
    service: EmployeeImportService = Depends(get_employee_import_service),
):
    """Apply the decisions: deactivate, then create. Returns the outcome report."""
    try:
        return await service.commit_import(attempt_id)
    except (ImportAttemptNotFound, ImportAlreadyCommitted) as exc:
        _raise_for(exc)


@router.delete("/{attempt_id}", status_code=status.HTTP_204_NO_CONTENT)
async def abandon_import(
    attempt_id: UUID,
    service: EmployeeImportService = Depends(get_employee_import_service),
):
    """Abandon an attempt before commit. Nothing has been written."""
    try:
        service.abandon(attempt_id)
    except (ImportAttemptNotFound, ImportAlreadyCommitted) as exc:
        _raise_for(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
