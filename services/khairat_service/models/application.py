"""New-schema models: membership applications, dependents and payments.

IC numbers on these tables are stored encrypted (see libs.common.field_crypto)
and can only be matched by decrypting.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.khairat_service.models.enums import (
    ApplicationStatus,
    DependentRelationship,
    FeeType,
    PaymentStatus,
    enum_values,
)
from sqlalchemy import Date, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship


class MembershipApplication(Base):
    __tablename__ = "khairat_ahli"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Personal
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    ic_number: Mapped[str] = mapped_column(Text, nullable=False)  # ciphertext
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    home_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    mobile_phone: Mapped[str] = mapped_column(String(32), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Membership
    fee_type: Mapped[FeeType] = mapped_column(
        SAEnum(
            FeeType,
            name="khairat_fee_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    receipt_number: Mapped[str] = mapped_column(String(64), nullable=False)
    receipt_file: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    amount_paid: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("50.00")
    )
    registered_on: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Lifecycle
    status: Mapped[ApplicationStatus] = mapped_column(
        SAEnum(
            ApplicationStatus,
            name="khairat_application_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
        default=ApplicationStatus.PENDING,
        index=True,
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    approved_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    reject_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Same person in the legacy spreadsheet data. Correlation only, not ownership.
    linked_legacy_member_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("khairat_members.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    dependents: Mapped[list["Dependent"]] = relationship(
        "Dependent",
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="Dependent.id",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<MembershipApplication {self.id} {self.status.value}>"


class Dependent(Base):
    """Spouse or child covered by an application. Deleted with its application."""

    __tablename__ = "khairat_tanggungan"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    application_id: Mapped[int] = mapped_column(
        ForeignKey("khairat_ahli.id", ondelete="CASCADE"), nullable=False, index=True
    )
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    ic_number: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # ciphertext
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    relation: Mapped[DependentRelationship] = mapped_column(
        "relationship",
        SAEnum(
            DependentRelationship,
            name="khairat_dependent_relationship_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    application: Mapped["MembershipApplication"] = relationship(
        "MembershipApplication", back_populates="dependents"
    )


class Payment(Base):
    """Yearly contribution recorded through the new system."""

    __tablename__ = "khairat_bayaran"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    application_id: Mapped[int] = mapped_column(
        ForeignKey("khairat_ahli.id", ondelete="CASCADE"), nullable=False, index=True
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    receipt_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    status: Mapped[PaymentStatus] = mapped_column(
        SAEnum(
            PaymentStatus,
            name="khairat_payment_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    reviewed_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
