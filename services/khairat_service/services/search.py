"""
Member lookup by IC number across the new and legacy schemas.

New-schema applications are checked first (their IC numbers are encrypted, so
each approved application is decrypted in insertion order until one matches).
Only when none matches do we fall back to the legacy tables.
"""

from typing import Optional

from libs.common.datetime_utils import current_year as local_current_year
from libs.common.field_crypto import CryptoError, FieldCipher
from libs.common.logging import get_logger
from services.khairat_service.exceptions import ValidationError
from services.khairat_service.models import (
    ApplicationStatus,
    LegacyMember,
    LegacyPayment,
    MembershipApplication,
    Payment,
)
from services.khairat_service.schemas import (
    LegacySchemaMatch,
    NewSchemaMatch,
    NoMatch,
    SearchResult,
)
from services.khairat_service.services.merge import (
    build_legacy_profile,
    build_profile,
    count_pending,
    derive_legacy_dependents,
    merge_dependents,
    merge_payments,
    summarize_payments,
)
from services.khairat_service.services.validation import (
    MIN_IC_SEARCH_LENGTH,
    canonicalize_ic,
)
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

NO_MATCH_MESSAGE = (
    "Tiada rekod dijumpai bagi No. Kad Pengenalan ini. "
    "Sila daftar sebagai ahli khairat atau hubungi pejabat masjid."
)


async def find_approved_application(
    db: AsyncSession, ic_number: str, *, cipher: FieldCipher
) -> Optional[tuple[MembershipApplication, str]]:
    """First approved application whose decrypted IC equals ``ic_number``.

    Returns (application, plaintext IC) or None. Rows that fail to decrypt
    are skipped.
    """
    result = await db.execute(
        select(MembershipApplication)
        .where(MembershipApplication.status == ApplicationStatus.APPROVED)
        .order_by(MembershipApplication.id)
    )
    for application in result.scalars():
        try:
            plaintext = canonicalize_ic(cipher.decrypt(application.ic_number))
        except CryptoError:
            logger.warning(
                "Skipping application %s during search: IC cannot be decrypted",
                application.id,
            )
            continue
        if plaintext == ic_number:
            return application, plaintext
    return None


async def find_legacy_member(db: AsyncSession, ic_number: str) -> Optional[LegacyMember]:
    """Exact IC match, else the first legacy IC containing the search term."""
    result = await db.execute(
        select(LegacyMember).where(LegacyMember.ic_number == ic_number)
    )
    member = result.scalar_one_or_none()
    if member is not None:
        return member

    result = await db.execute(
        select(LegacyMember)
        .where(LegacyMember.ic_number.contains(ic_number, autoescape=True))
        .order_by(LegacyMember.id)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def _link_legacy_member(
    db: AsyncSession, application: MembershipApplication, ic_number: str
) -> Optional[LegacyMember]:
    """Resolve the legacy record for an application, linking it on first sight."""
    if application.linked_legacy_member_id is not None:
        return await db.get(LegacyMember, application.linked_legacy_member_id)

    result = await db.execute(
        select(LegacyMember).where(LegacyMember.ic_number == ic_number)
    )
    member = result.scalar_one_or_none()
    if member is None:
        return None

    application_id, member_id = application.id, member.id
    application.linked_legacy_member_id = member_id
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.warning(
            "Could not link application %s to legacy member %s: %s",
            application_id,
            member_id,
            exc,
        )
        # Rollback expired both rows
        await db.refresh(application)
        await db.refresh(member)
        return member

    logger.info(
        "Linked application %s to legacy member %s", application.id, member.id
    )
    return member


async def _new_payments(db: AsyncSession, application_id: int) -> list[Payment]:
    result = await db.execute(
        select(Payment)
        .where(Payment.application_id == application_id)
        .order_by(Payment.year.desc(), Payment.id)
    )
    return list(result.scalars().all())


async def _legacy_payments(db: AsyncSession, member_id: int) -> list[LegacyPayment]:
    result = await db.execute(
        select(LegacyPayment)
        .where(LegacyPayment.member_id == member_id)
        .order_by(LegacyPayment.year.desc(), LegacyPayment.id)
    )
    return list(result.scalars().all())


async def search_member(
    db: AsyncSession,
    raw_ic: Optional[str],
    *,
    cipher: FieldCipher,
    current_year: Optional[int] = None,
) -> SearchResult:
    ic_number = canonicalize_ic(raw_ic)
    if len(ic_number) < MIN_IC_SEARCH_LENGTH:
        raise ValidationError(
            f"No. Kad Pengenalan mesti sekurang-kurangnya {MIN_IC_SEARCH_LENGTH} aksara"
        )
    year = current_year or local_current_year()

    match = await find_approved_application(db, ic_number, cipher=cipher)
    if match is not None:
        application, plaintext_ic = match
        legacy_member = await _link_legacy_member(db, application, plaintext_ic)

        new_payments = await _new_payments(db, application.id)
        legacy_payments = (
            await _legacy_payments(db, legacy_member.id) if legacy_member else []
        )
        dependents = merge_dependents(application.dependents, legacy_member)
        payments = merge_payments(new_payments, legacy_payments)

        return NewSchemaMatch(
            ahli_id=application.id,
            member_id=legacy_member.id if legacy_member else None,
            member=build_profile(application, plaintext_ic, legacy_member),
            dependents=dependents,
            payments=payments,
            summary=summarize_payments(
                payments,
                current_year=year,
                dependent_count=len(dependents),
                pending_count=count_pending(new_payments),
            ),
        )

    member = await find_legacy_member(db, ic_number)
    if member is None:
        return NoMatch(message=NO_MATCH_MESSAGE)

    result = await db.execute(
        select(MembershipApplication)
        .where(MembershipApplication.linked_legacy_member_id == member.id)
        .order_by(MembershipApplication.id)
        .limit(1)
    )
    linked_application = result.scalar_one_or_none()

    new_payments = (
        await _new_payments(db, linked_application.id) if linked_application else []
    )
    legacy_payments = await _legacy_payments(db, member.id)
    dependents = derive_legacy_dependents(member)
    payments = merge_payments(new_payments, legacy_payments)

    return LegacySchemaMatch(
        member_id=member.id,
        ahli_id=linked_application.id if linked_application else None,
        member=build_legacy_profile(member),
        dependents=dependents,
        payments=payments,
        summary=summarize_payments(
            payments,
            current_year=year,
            dependent_count=len(dependents),
            pending_count=count_pending(new_payments),
        ),
    )
