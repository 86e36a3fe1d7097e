"""Legacy ("old system") models populated from the fund's spreadsheets.

Members are flat rows: dependents are named columns rather than child rows,
and the IC number is stored in plain text.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.khairat_service.models.enums import (
    LegacyMemberStatus,
    LegacyPaymentStatus,
    enum_values,
)
from sqlalchemy import Date, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column


class LegacyMember(Base):
    __tablename__ = "khairat_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ic_number: Mapped[str] = mapped_column(
        String(32), unique=True, index=True, nullable=False
    )
    member_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    registered_on: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Named dependent slots
    spouse: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    child_1: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    child_2: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    child_3: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    child_4: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    child_5: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    child_6: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    child_7: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    child_8: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    father: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    mother: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    father_in_law: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    mother_in_law: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    status: Mapped[LegacyMemberStatus] = mapped_column(
        SAEnum(
            LegacyMemberStatus,
            name="khairat_legacy_member_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
        default=LegacyMemberStatus.ACTIVE,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    def __repr__(self):
        return f"<LegacyMember {self.ic_number}>"


class LegacyPayment(Base):
    __tablename__ = "khairat_payments"
    __table_args__ = (
        UniqueConstraint("member_id", "year", name="uq_khairat_payments_member_year"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    member_id: Mapped[int] = mapped_column(
        ForeignKey("khairat_members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    receipt_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    status: Mapped[LegacyPaymentStatus] = mapped_column(
        SAEnum(
            LegacyPaymentStatus,
            name="khairat_legacy_payment_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
        default=LegacyPaymentStatus.PAID,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )


class UploadAudit(Base):
    """Append-only log of spreadsheet imports."""

    __tablename__ = "khairat_uploads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    uploaded_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    total_records: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
