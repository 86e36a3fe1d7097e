"""Membership applications: public registration and staff review."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from libs.auth.dependencies import require_admin, require_staff
from libs.auth.models import AuthUser
from libs.common.field_crypto import FieldCipher
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.khairat_service.models import ApplicationStatus
from services.khairat_service.routers._helpers import get_field_cipher, get_notifier
from services.khairat_service.schemas import (
    ActionResponse,
    ApplicationCreate,
    ApplicationDetailResponse,
    ApplicationListItem,
    DecisionRequest,
    PaymentCreate,
    PaymentResponse,
    PaymentReviewRequest,
    SubmitResponse,
)
from services.khairat_service.services import lifecycle
from services.khairat_service.services.notifications import NotificationDispatcher

logger = get_logger(__name__)
router = APIRouter(prefix="/khairat", tags=["khairat"])


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------


@router.post("/daftar", response_model=SubmitResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: ApplicationCreate,
    db: AsyncSession = Depends(get_async_db),
    cipher: FieldCipher = Depends(get_field_cipher),
):
    """Submit a new khairat membership application."""
    application = await lifecycle.submit_application(db, payload, cipher=cipher)
    return SubmitResponse(
        message="Permohonan anda telah dihantar dan sedang menunggu kelulusan",
        id=application.id,
    )


@router.post(
    "/applications/{application_id}/payments",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_payment(
    application_id: int,
    payload: PaymentCreate,
    db: AsyncSession = Depends(get_async_db),
):
    payment = await lifecycle.submit_payment(
        db, application_id=application_id, data=payload
    )
    return PaymentResponse.model_validate(payment)


# ---------------------------------------------------------------------------
# Staff
# ---------------------------------------------------------------------------


@router.get("/applications", response_model=list[ApplicationListItem])
async def list_applications(
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
    cipher: FieldCipher = Depends(get_field_cipher),
):
    return await lifecycle.list_applications(
        db,
        cipher=cipher,
        status=status_filter.value if status_filter else None,
    )


@router.get("/applications/{application_id}", response_model=ApplicationDetailResponse)
async def get_application(
    application_id: int,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
    cipher: FieldCipher = Depends(get_field_cipher),
):
    return await lifecycle.get_application_detail(
        db, application_id=application_id, cipher=cipher
    )


@router.put("/applications/{application_id}", response_model=ActionResponse)
async def decide_application(
    application_id: int,
    payload: DecisionRequest,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
    cipher: FieldCipher = Depends(get_field_cipher),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """Approve or reject a pending application."""
    application = await lifecycle.decide_application(
        db,
        application_id=application_id,
        action=payload.action,
        reject_reason=payload.reject_reason,
        decided_by=current_user.reference,
        cipher=cipher,
        notifier=notifier,
    )
    if application.status == ApplicationStatus.APPROVED:
        message = "Permohonan telah diluluskan dan notifikasi sedang dihantar"
    else:
        message = "Permohonan telah ditolak dan notifikasi sedang dihantar"
    return ActionResponse(message=message)


@router.delete("/applications/{application_id}", response_model=ActionResponse)
async def delete_application(
    application_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await lifecycle.delete_application(
        db, application_id=application_id, deleted_by=current_user.reference
    )
    return ActionResponse(message="Permohonan telah dipadam")


@router.put("/payments/{payment_id}", response_model=PaymentResponse)
async def review_payment(
    payment_id: int,
    payload: PaymentReviewRequest,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    payment = await lifecycle.review_payment(
        db,
        payment_id=payment_id,
        action=payload.action,
        reviewed_by=current_user.reference,
    )
    return PaymentResponse.model_validate(payment)
