"""
Payslip batch router - upload many payslip PDFs at once.

Files are matched to employees by name (`<CPF>-<MM>-<YYYY>.pdf`).
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, File, Response, UploadFile, status

from app.core.config import settings
from app.core.dependencies import get_payslip_batch_service
from app.errors import raise_app_error
from app.routers.uploads import read_upload
from app.schemas.payslip_batch import PayslipBatchRead, PayslipBatchReport, PayslipFileStatus, PayslipFileView
from app.services.payslip_batch_service import (
    PayslipBatch,
    PayslipBatchClosed,
    PayslipBatchError,
    PayslipBatchNotFound,
    PayslipBatchService,
)

router = APIRouter(prefix="/payslips/batch", tags=["payslips"])


def _batch_read(batch: PayslipBatch) -> PayslipBatchRead:
    files = [
        PayslipFileView(
            index=index,
            filename=item.filename,
            status=item.status,
            reason=item.reason,
            user_id=item.owner.id if item.owner else None,
            user_name=item.owner.name if item.owner else None,
            month=item.month,
            year=item.year,
            replace=item.replace,
        )
        for index, item in enumerate(batch.files)
    ]
    return PayslipBatchRead(
        batch_id=batch.id,
        stage=batch.stage.value,
        ready_count=batch.count(PayslipFileStatus.READY),
        duplicate_count=batch.count(PayslipFileStatus.DUPLICATE),
        error_count=batch.count(PayslipFileStatus.ERROR),
        files=files,
        report=batch.report,
        expires_at=batch.expires_at,
    )


def _raise_for(exc: PayslipBatchError) -> None:
    if isinstance(exc, PayslipBatchNotFound):
        raise_app_error(status.HTTP_404_NOT_FOUND, "PAYSLIP_BATCH_NOT_FOUND", str(exc))
    if isinstance(exc, PayslipBatchClosed):
        raise_app_error(status.HTTP_409_CONFLICT, "PAYSLIP_BATCH_ALREADY_COMMITTED", str(exc))
    raise_app_error(status.HTTP_400_BAD_REQUEST, "INVALID_PAYSLIP_SELECTION", str(exc))


@router.post("", response_model=PayslipBatchRead, status_code=status.HTTP_201_CREATED)
async def upload_payslips(
    files: List[UploadFile] = File(...),
    service: PayslipBatchService = Depends(get_payslip_batch_service),
):
    """Classify uploaded PDFs as ready, duplicate or error. Nothing is stored yet."""
    uploaded = []
    for upload in files:
        content = await read_upload(upload, settings.PAYSLIP_MAX_FILE_BYTES)
        uploaded.append((upload.filename or "", content))

    batch = await service.preview(uploaded)
    return _batch_read(batch)


@router.get("/{batch_id}", response_model=PayslipBatchRead)
async def get_payslip_batch(
    batch_id: UUID,
    service: PayslipBatchService = Depends(get_payslip_batch_service),
):
    try:
        return _batch_read(service.get_batch(batch_id))
    except PayslipBatchError as exc:
        _raise_for(exc)


@router.post("/{batch_id}/files/{index}/toggle", response_model=PayslipBatchRead)
async def toggle_replace(
    batch_id: UUID,
    index: int,
    service: PayslipBatchService = Depends(get_payslip_batch_service),
):
    """Opt a duplicate file in or out of replacing the stored payslip."""
    try:
        service.toggle_replace(batch_id, index)
        return _batch_read(service.get_batch(batch_id))
    except PayslipBatchError as exc:
        _raise_for(exc)


@router.post("/{batch_id}/commit", response_model=PayslipBatchReport)
async def commit_payslips(
    batch_id: UUID,
    service: PayslipBatchService = Depends(get_payslip_batch_service),
):
    try:
        return await service.commit(batch_id)
    except PayslipBatchError as exc:
        _raise_for(exc)


@router.delete("/{batch_id}", status_code=status.HTTP_204_NO_CONTENT)
async def abandon_payslips(
    batch_id: UUID,
    service: PayslipBatchService = Depends(get_payslip_batch_service),
):
    try:
        service.abandon(batch_id)
    except PayslipBatchError as exc:
        _raise_for(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
