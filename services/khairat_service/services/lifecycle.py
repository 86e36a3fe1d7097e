"""
Membership application lifecycle: submit, decide, delete, read.

Applications move pending -> approved or pending -> rejected and never leave
a terminal state. Decisions are written as a conditional UPDATE guarded on
``status = 'pending'`` so two reviewers racing on the same application cannot
both succeed.
"""

from decimal import Decimal
from typing import Optional

from libs.common.config import get_settings
from libs.common.datetime_utils import local_today, utc_now
from libs.common.field_crypto import CryptoError, FieldCipher
from libs.common.logging import get_logger
from services.khairat_service.exceptions import (
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from services.khairat_service.models import (
    ApplicationStatus,
    DecisionAction,
    Dependent,
    DependentRelationship,
    FeeType,
    MembershipApplication,
    Payment,
    PaymentStatus,
)
from services.khairat_service.schemas import (
    ApplicationCreate,
    ApplicationDetailResponse,
    ApplicationListItem,
    DependentResponse,
    NotificationPayload,
    PaymentCreate,
)
from services.khairat_service.services.notifications import NotificationDispatcher
from services.khairat_service.services.validation import (
    canonicalize_ic,
    canonicalize_mobile,
    clean_text,
    is_valid_email,
    is_valid_mobile,
    normalize_email,
)
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

REQUIRED_FIELDS = (
    "name",
    "ic_number",
    "address",
    "mobile_phone",
    "fee_type",
    "receipt_number",
)

# Statuses that block a second application for the same IC
ACTIVE_APPLICATION_STATUSES = (ApplicationStatus.PENDING, ApplicationStatus.APPROVED)


def _parse_action(action: Optional[str]) -> DecisionAction:
    try:
        return DecisionAction((action or "").strip().lower())
    except ValueError:
        raise ValidationError("Tindakan tidak sah. Gunakan 'approve' atau 'reject'")


async def _commit(db: AsyncSession, failure_message: str) -> None:
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("%s: %s", failure_message, exc)
        raise PersistenceError(failure_message) from exc


async def _get_application(db: AsyncSession, application_id: int) -> MembershipApplication:
    application = await db.get(MembershipApplication, application_id)
    if application is None:
        raise NotFoundError("Permohonan tidak dijumpai")
    return application


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


async def find_active_application_by_ic(
    db: AsyncSession, ic_number: str, *, cipher: FieldCipher
) -> Optional[MembershipApplication]:
    """Pending or approved application whose decrypted IC equals ``ic_number``."""
    result = await db.execute(
        select(MembershipApplication)
        .where(MembershipApplication.status.in_(ACTIVE_APPLICATION_STATUSES))
        .order_by(MembershipApplication.id)
    )
    for application in result.scalars():
        try:
            stored = canonicalize_ic(cipher.decrypt(application.ic_number))
        except CryptoError:
            logger.warning(
                "Skipping application %s: IC number cannot be decrypted",
                application.id,
            )
            continue
        if stored == ic_number:
            return application
    return None


def _build_dependents(data: ApplicationCreate, cipher: FieldCipher) -> list[Dependent]:
    dependents = []
    for item in data.dependents:
        full_name = clean_text(item.full_name)
        relationship = clean_text(item.relationship)
        if not full_name or not relationship:
            continue

        try:
            relation = DependentRelationship(relationship.lower())
        except ValueError:
            raise ValidationError(f"Hubungan tanggungan tidak sah: {relationship}")

        ic_number = canonicalize_ic(item.ic_number)
        dependents.append(
            Dependent(
                full_name=full_name,
                ic_number=cipher.encrypt(ic_number) if ic_number else None,
                age=item.age,
                relation=relation,
            )
        )
    return dependents


async def submit_application(
    db: AsyncSession, data: ApplicationCreate, *, cipher: FieldCipher
) -> MembershipApplication:
    """Validate and store a new application with its dependents.

    Returns the persisted application (status pending).
    """
    values = {field: clean_text(getattr(data, field)) for field in REQUIRED_FIELDS}
    missing = [field for field, value in values.items() if not value]
    if missing:
        raise ValidationError("Sila lengkapkan semua maklumat yang diperlukan")

    try:
        fee_type = FeeType(values["fee_type"].lower())
    except ValueError:
        raise ValidationError("Jenis yuran tidak sah")

    if not is_valid_mobile(values["mobile_phone"]):
        raise ValidationError("Format nombor telefon bimbit tidak sah")

    email = normalize_email(data.email)
    if email and not is_valid_email(email):
        raise ValidationError("Format emel tidak sah")

    ic_number = canonicalize_ic(values["ic_number"])
    if not ic_number:
        raise ValidationError("Sila lengkapkan semua maklumat yang diperlukan")

    dependents = _build_dependents(data, cipher)

    existing = await find_active_application_by_ic(db, ic_number, cipher=cipher)
    if existing is not None:
        raise ValidationError(
            "No. Kad Pengenalan ini sudah mempunyai permohonan yang aktif"
        )

    amount = data.amount_paid
    if amount is None:
        amount = Decimal(str(get_settings().DEFAULT_FEE_AMOUNT))

    application = MembershipApplication(
        name=values["name"],
        ic_number=cipher.encrypt(ic_number),
        age=data.age,
        address=values["address"],
        home_phone=clean_text(data.home_phone),
        mobile_phone=canonicalize_mobile(values["mobile_phone"]),
        email=email,
        fee_type=fee_type,
        receipt_number=values["receipt_number"],
        receipt_file=clean_text(data.receipt_file),
        amount_paid=amount,
        registered_on=local_today(),
        status=ApplicationStatus.PENDING,
        dependents=dependents,
    )
    db.add(application)
    await _commit(db, "Gagal menyimpan permohonan")
    await db.refresh(application)

    logger.info(
        "Khairat application %s submitted with %d dependents",
        application.id,
        len(dependents),
        extra={"extra_fields": {"fee_type": fee_type.value}},
    )
    return application


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


def build_notification_payload(
    application: MembershipApplication, ic_number: str
) -> NotificationPayload:
    return NotificationPayload(
        application_id=application.id,
        name=application.name,
        ic_number=ic_number,
        mobile_phone=application.mobile_phone,
        email=application.email,
        fee_type=application.fee_type.value,
        receipt_number=application.receipt_number,
        amount=float(application.amount_paid),
        registered_on=application.registered_on,
        dependent_count=len(application.dependents),
    )


async def decide_application(
    db: AsyncSession,
    *,
    application_id: int,
    action: Optional[str],
    decided_by: str,
    reject_reason: Optional[str] = None,
    cipher: FieldCipher,
    notifier: Optional[NotificationDispatcher] = None,
) -> MembershipApplication:
    """Approve or reject a pending application, then notify the applicant."""
    application = await _get_application(db, application_id)
    if application.status != ApplicationStatus.PENDING:
        raise InvalidStateError("Permohonan ini telah diproses")

    decision = _parse_action(action)
    reason = clean_text(reject_reason)

    if decision == DecisionAction.APPROVE:
        values = {
            "status": ApplicationStatus.APPROVED,
            "approved_at": utc_now(),
            "approved_by": decided_by,
        }
    else:
        if not reason:
            raise ValidationError("Sila nyatakan sebab penolakan")
        values = {
            "status": ApplicationStatus.REJECTED,
            "reject_reason": reason,
            "approved_by": decided_by,
        }

    stmt = (
        update(MembershipApplication)
        .where(
            MembershipApplication.id == application_id,
            MembershipApplication.status == ApplicationStatus.PENDING,
        )
        .values(**values, updated_at=utc_now())
        .execution_options(synchronize_session=False)
    )
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Decision on application %s failed: %s", application_id, exc)
        raise PersistenceError("Gagal memproses permohonan") from exc

    if result.rowcount == 0:
        await db.rollback()
        raise InvalidStateError("Permohonan ini telah diproses")

    await _commit(db, "Gagal memproses permohonan")
    await db.refresh(application)

    logger.info(
        "Khairat application %s %s by %s",
        application_id,
        application.status.value,
        decided_by,
    )

    if notifier is not None:
        _notify_decision(application, notifier, cipher, reason)

    return application


def _notify_decision(
    application: MembershipApplication,
    notifier: NotificationDispatcher,
    cipher: FieldCipher,
    reason: Optional[str],
) -> None:
    try:
        ic_number = cipher.decrypt(application.ic_number)
    except CryptoError:
        logger.error(
            "Not notifying application %s: IC number cannot be decrypted",
            application.id,
        )
        return

    payload = build_notification_payload(application, ic_number)
    if application.status == ApplicationStatus.APPROVED:
        notifier.dispatch_approval(payload)
    else:
        notifier.dispatch_rejection(payload, reason or "")


# ---------------------------------------------------------------------------
# Delete / read
# ---------------------------------------------------------------------------


async def delete_application(
    db: AsyncSession, *, application_id: int, deleted_by: str
) -> None:
    """Remove an application together with its dependents and payments."""
    application = await _get_application(db, application_id)
    await db.delete(application)
    await _commit(db, "Gagal memadam permohonan")
    logger.warning("Khairat application %s deleted by %s", application_id, deleted_by)


def to_detail(
    application: MembershipApplication, cipher: FieldCipher
) -> ApplicationDetailResponse:
    """Detail view with IC numbers decrypted. CryptoError propagates."""
    dependents = [
        DependentResponse(
            id=dependent.id,
            full_name=dependent.full_name,
            ic_number=cipher.decrypt(dependent.ic_number) if dependent.ic_number else None,
            age=dependent.age,
            relationship=dependent.relation.value,
            created_at=dependent.created_at,
        )
        for dependent in application.dependents
    ]
    return ApplicationDetailResponse(
        id=application.id,
        name=application.name,
        ic_number=cipher.decrypt(application.ic_number),
        age=application.age,
        address=application.address,
        home_phone=application.home_phone,
        mobile_phone=application.mobile_phone,
        email=application.email,
        fee_type=application.fee_type.value,
        receipt_number=application.receipt_number,
        receipt_file=application.receipt_file,
        amount_paid=float(application.amount_paid),
        registered_on=application.registered_on,
        status=application.status.value,
        approved_at=application.approved_at,
        approved_by=application.approved_by,
        reject_reason=application.reject_reason,
        linked_legacy_member_id=application.linked_legacy_member_id,
        created_at=application.created_at,
        updated_at=application.updated_at,
        dependents=dependents,
    )


async def get_application_detail(
    db: AsyncSession, *, application_id: int, cipher: FieldCipher
) -> ApplicationDetailResponse:
    application = await _get_application(db, application_id)
    return to_detail(application, cipher)


async def list_applications(
    db: AsyncSession, *, cipher: FieldCipher, status: Optional[str] = None
) -> list[ApplicationListItem]:
    """Staff listing, newest first."""
    dependent_counts = (
        select(Dependent.application_id, func.count(Dependent.id).label("count"))
        .group_by(Dependent.application_id)
        .subquery()
    )
    query = (
        select(MembershipApplication, func.coalesce(dependent_counts.c.count, 0))
        .outerjoin(
            dependent_counts,
            dependent_counts.c.application_id == MembershipApplication.id,
        )
        .order_by(MembershipApplication.created_at.desc(), MembershipApplication.id.desc())
    )
    if status:
        try:
            query = query.where(MembershipApplication.status == ApplicationStatus(status))
        except ValueError:
            raise ValidationError("Status tidak sah")

    result = await db.execute(query)

    items = []
    for application, dependent_count in result.all():
        try:
            ic_number = cipher.decrypt(application.ic_number)
        except CryptoError:
            logger.warning(
                "Application %s has an undecryptable IC number", application.id
            )
            ic_number = None
        items.append(
            ApplicationListItem(
                id=application.id,
                name=application.name,
                ic_number=ic_number,
                mobile_phone=application.mobile_phone,
                fee_type=application.fee_type.value,
                receipt_number=application.receipt_number,
                amount_paid=float(application.amount_paid),
                status=application.status.value,
                registered_on=application.registered_on,
                dependent_count=dependent_count,
                created_at=application.created_at,
            )
        )
    return items


# ---------------------------------------------------------------------------
# New-schema payments
# ---------------------------------------------------------------------------


async def submit_payment(
    db: AsyncSession, *, application_id: int, data: PaymentCreate
) -> Payment:
    """Record a yearly contribution from an approved member for review."""
    application = await _get_application(db, application_id)
    if application.status != ApplicationStatus.APPROVED:
        raise InvalidStateError("Hanya ahli yang telah diluluskan boleh membuat bayaran")

    payment = Payment(
        application_id=application.id,
        year=data.year,
        amount=data.amount,
        receipt_number=clean_text(data.receipt_number),
        status=PaymentStatus.PENDING,
    )
    db.add(payment)
    await _commit(db, "Gagal menyimpan bayaran")
    await db.refresh(payment)

    logger.info(
        "Payment %s for %s submitted by application %s",
        payment.id,
        payment.year,
        application_id,
    )
    return payment


async def review_payment(
    db: AsyncSession, *, payment_id: int, action: Optional[str], reviewed_by: str
) -> Payment:
    payment = await db.get(Payment, payment_id)
    if payment is None:
        raise NotFoundError("Bayaran tidak dijumpai")
    if payment.status != PaymentStatus.PENDING:
        raise InvalidStateError("Bayaran ini telah disemak")

    decision = _parse_action(action)
    new_status = (
        PaymentStatus.APPROVED
        if decision == DecisionAction.APPROVE
        else PaymentStatus.REJECTED
    )

    stmt = (
        update(Payment)
        .where(Payment.id == payment_id, Payment.status == PaymentStatus.PENDING)
        .values(status=new_status, reviewed_by=reviewed_by, reviewed_at=utc_now())
        .execution_options(synchronize_session=False)
    )
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Review of payment %s failed: %s", payment_id, exc)
        raise PersistenceError("Gagal menyemak bayaran") from exc

    if result.rowcount == 0:
        await db.rollback()
        raise InvalidStateError("Bayaran ini telah disemak")

    await _commit(db, "Gagal menyemak bayaran")
    await db.refresh(payment)
    logger.info("Payment %s %s by %s", payment_id, new_status.value, reviewed_by)
    return payment
