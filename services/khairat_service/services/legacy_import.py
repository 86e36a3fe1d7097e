"""Bulk import of legacy member registers into the old-system tables."""

import asyncio
from decimal import Decimal
from io import BytesIO
from typing import Any, Optional, Sequence
from zipfile import BadZipFile

from libs.common.config import get_settings
from libs.common.logging import get_logger
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from services.khairat_service.exceptions import (
    PersistenceError,
    SheetNotFoundError,
    ValidationError,
)
from services.khairat_service.models import (
    LegacyMember,
    LegacyMemberStatus,
    LegacyPayment,
    MembershipApplication,
    UploadAudit,
)
from services.khairat_service.schemas import ImportStats, LegacyStats, PurgeCounts
from services.khairat_service.services.sheet_layout import (
    PaymentCell,
    detect_layout,
    extract_member_fields,
    extract_payments,
)
from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

MEMBER_SHEET_KEYWORD = "ahli"
FALLBACK_SHEET_INDEX = 1


# ---------------------------------------------------------------------------
# Workbook reading
# ---------------------------------------------------------------------------


def read_workbook(content: bytes) -> list[list[Any]]:
    """Load the member worksheet of an ``.xlsx`` file as a grid of values.

    The sheet whose name mentions "ahli" is preferred, otherwise the second
    sheet (the first is usually a cover or summary page).
    """
    try:
        workbook = load_workbook(BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, ValueError, OSError) as exc:
        raise ValidationError("Fail Excel tidak dapat dibaca") from exc

    try:
        names = workbook.sheetnames
        sheet_name = next(
            (name for name in names if MEMBER_SHEET_KEYWORD in name.lower()), None
        )
        if sheet_name is None and len(names) > FALLBACK_SHEET_INDEX:
            sheet_name = names[FALLBACK_SHEET_INDEX]
        if sheet_name is None:
            raise SheetNotFoundError("Helaian data ahli tidak dijumpai dalam fail")

        sheet = workbook[sheet_name]
        return [list(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


# ---------------------------------------------------------------------------
# Upserts
# ---------------------------------------------------------------------------


async def _upsert_member(db: AsyncSession, fields: dict) -> tuple[LegacyMember, bool]:
    """Returns (member, created)."""
    result = await db.execute(
        select(LegacyMember).where(LegacyMember.ic_number == fields["ic_number"])
    )
    member = result.scalar_one_or_none()
    created = member is None
    if created:
        member = LegacyMember(**fields)
        db.add(member)
    else:
        for key, value in fields.items():
            setattr(member, key, value)
    await db.flush()
    return member, created


def _payment_insert(db: AsyncSession):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    if dialect in ("mysql", "mariadb"):
        return mysql_insert
    raise NotImplementedError(f"Payment upsert not supported on {dialect}")


async def _upsert_payment(db: AsyncSession, member_id: int, payment: PaymentCell) -> None:
    insert = _payment_insert(db)
    values = {
        "member_id": member_id,
        "year": payment.year,
        "amount": Decimal(str(payment.amount)),
        "receipt_number": payment.receipt_number,
        "status": payment.status,
    }
    stmt = insert(LegacyPayment).values(**values)
    overwrite = ("amount", "receipt_number", "status")
    if insert is mysql_insert:
        stmt = stmt.on_duplicate_key_update(
            **{col: stmt.inserted[col] for col in overwrite}
        )
    else:
        stmt = stmt.on_conflict_do_update(
            index_elements=[LegacyPayment.member_id, LegacyPayment.year],
            set_={col: stmt.excluded[col] for col in overwrite},
        )
    await db.execute(stmt)


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


async def import_legacy_rows(
    db: AsyncSession,
    rows: Sequence[Sequence[Any]],
    *,
    filename: str,
    uploaded_by: Optional[str] = None,
) -> ImportStats:
    """Upsert every usable row into the legacy tables.

    The whole batch runs in one transaction. Each member upsert and each
    payment upsert gets its own savepoint; a failing one is counted in
    ``errors`` and the rest still land.
    """
    layout = detect_layout(rows)
    stats = ImportStats()

    try:
        for row_number, row in enumerate(rows[layout.header_row + 1 :], start=1):
            if not row:
                continue
            fields = extract_member_fields(row, layout)
            if fields is None:
                continue

            try:
                async with db.begin_nested():
                    member, created = await _upsert_member(db, fields)
            except SQLAlchemyError as exc:
                stats.errors += 1
                logger.warning(
                    "Skipping legacy row %d (%s): %s",
                    row_number,
                    fields["ic_number"],
                    exc.__class__.__name__,
                    extra={"extra_fields": {"filename": filename}},
                )
                continue

            if created:
                stats.inserted += 1
            else:
                stats.updated += 1

            # A bad payment cell costs only that payment, never the member
            for payment in extract_payments(row, layout):
                try:
                    async with db.begin_nested():
                        await _upsert_payment(db, member.id, payment)
                except SQLAlchemyError as exc:
                    stats.errors += 1
                    logger.warning(
                        "Skipping %d payment on legacy row %d (%s): %s",
                        payment.year,
                        row_number,
                        fields["ic_number"],
                        exc.__class__.__name__,
                        extra={"extra_fields": {"filename": filename}},
                    )

        stats.total = stats.inserted + stats.updated
        db.add(
            UploadAudit(
                filename=filename,
                uploaded_by=uploaded_by,
                total_records=stats.total,
            )
        )
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Legacy import of %s failed: %s", filename, exc)
        raise PersistenceError("Gagal menyimpan data import") from exc

    logger.info(
        "Imported legacy sheet %s",
        filename,
        extra={"extra_fields": {**stats.model_dump(), "uploaded_by": uploaded_by}},
    )
    return stats


async def import_workbook(
    db: AsyncSession,
    content: bytes,
    *,
    filename: str,
    uploaded_by: Optional[str] = None,
) -> ImportStats:
    rows = await asyncio.to_thread(read_workbook, content)
    return await import_legacy_rows(
        db, rows, filename=filename, uploaded_by=uploaded_by
    )


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------


async def list_uploads(db: AsyncSession, *, limit: Optional[int] = None) -> list[UploadAudit]:
    limit = limit or get_settings().UPLOAD_HISTORY_LIMIT
    result = await db.execute(
        select(UploadAudit)
        .order_by(UploadAudit.created_at.desc(), UploadAudit.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def legacy_stats(db: AsyncSession) -> LegacyStats:
    result = await db.execute(
        select(LegacyMember.status, func.count(LegacyMember.id)).group_by(
            LegacyMember.status
        )
    )
    counts = {status: count for status, count in result.all()}
    return LegacyStats(
        total_members=sum(counts.values()),
        active_members=counts.get(LegacyMemberStatus.ACTIVE, 0),
        deceased_members=counts.get(LegacyMemberStatus.DECEASED, 0),
        moved_members=counts.get(LegacyMemberStatus.MOVED, 0),
    )


async def purge_legacy_data(db: AsyncSession) -> PurgeCounts:
    """Delete every legacy payment, member and upload record."""
    try:
        await db.execute(
            update(MembershipApplication)
            .where(MembershipApplication.linked_legacy_member_id.is_not(None))
            .values(linked_legacy_member_id=None)
        )
        payments = await db.execute(delete(LegacyPayment))
        members = await db.execute(delete(LegacyMember))
        uploads = await db.execute(delete(UploadAudit))
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Purging legacy data failed: %s", exc)
        raise PersistenceError("Gagal memadam data lama") from exc

    counts = PurgeCounts(
        payments=payments.rowcount,
        members=members.rowcount,
        uploads=uploads.rowcount,
    )
    logger.warning("Legacy data purged", extra={"extra_fields": counts.model_dump()})
    return counts
