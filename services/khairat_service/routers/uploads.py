"""Legacy spreadsheet upload, history and purge."""

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from libs.auth.dependencies import require_uploader
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.khairat_service.exceptions import ValidationError
from services.khairat_service.schemas import (
    ImportResponse,
    PurgeResponse,
    UploadAuditResponse,
    UploadHistoryResponse,
)
from services.khairat_service.services import legacy_import

router = APIRouter(prefix="/khairat/upload-excel", tags=["khairat-legacy"])

ALLOWED_EXTENSIONS = (".xlsx", ".xlsm")


@router.post("", response_model=ImportResponse, status_code=status.HTTP_200_OK)
async def upload_excel(
    file: UploadFile = File(...),
    current_user: AuthUser = Depends(require_uploader),
    db: AsyncSession = Depends(get_async_db),
):
    """Import a legacy member register (.xlsx) into the old-system tables."""
    filename = file.filename or "upload.xlsx"
    if not filename.lower().endswith(ALLOWED_EXTENSIONS):
        raise ValidationError("Sila muat naik fail Excel (.xlsx)")

    content = await file.read()
    if not content:
        raise ValidationError("Fail yang dimuat naik kosong")

    stats = await legacy_import.import_workbook(
        db, content, filename=filename, uploaded_by=current_user.reference
    )
    return ImportResponse(
        message=(
            f"Import selesai: {stats.inserted} rekod baharu, "
            f"{stats.updated} dikemas kini, {stats.errors} ralat"
        ),
        stats=stats,
    )


@router.get("", response_model=UploadHistoryResponse)
async def upload_history(
    current_user: AuthUser = Depends(require_uploader),
    db: AsyncSession = Depends(get_async_db),
):
    uploads = await legacy_import.list_uploads(db)
    stats = await legacy_import.legacy_stats(db)
    return UploadHistoryResponse(
        uploads=[UploadAuditResponse.model_validate(u) for u in uploads],
        stats=stats,
    )


@router.delete("", response_model=PurgeResponse)
async def purge_legacy_data(
    current_user: AuthUser = Depends(require_uploader),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete all imported legacy data so a clean sheet can be re-imported."""
    counts = await legacy_import.purge_legacy_data(db)
    return PurgeResponse(message="Semua data lama telah dipadam", deleted=counts)
