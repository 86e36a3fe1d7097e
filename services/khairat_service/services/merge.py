"""
Pure merge rules for presenting one member across the legacy and new schemas.

No database access here: callers load rows and pass them in, which keeps the
precedence rules testable in isolation.
"""

from decimal import Decimal
from typing import Iterable, Optional, Sequence

from services.khairat_service.models import (
    Dependent,
    DependentRelationship,
    LegacyMember,
    LegacyPayment,
    MembershipApplication,
    Payment,
    PaymentStatus,
)
from services.khairat_service.schemas import (
    DependentView,
    MemberProfile,
    PaymentEntry,
    PaymentSummary,
)

PAID = "paid"
PAID_EQUIVALENT = {PAID, PaymentStatus.APPROVED.value}

LABEL_NO_PAYMENT = "Belum Ada Bayaran"
LABEL_CURRENT = "Terkini"

ACTIVE_STATUS_LABEL = "aktif"

NEW_RELATIONSHIP_VIEWS = {
    DependentRelationship.SPOUSE: ("spouse", "Isteri"),
    DependentRelationship.CHILD: ("child", "Anak"),
    DependentRelationship.DISABLED_CHILD: ("disabled_child", "Anak OKU"),
}

# Legacy named slots in display order: (attribute, relationship code, label)
LEGACY_DEPENDENT_SLOTS = (
    ("spouse", "spouse", "Pasangan"),
    ("child_1", "child", "Anak"),
    ("child_2", "child", "Anak"),
    ("child_3", "child", "Anak"),
    ("child_4", "child", "Anak"),
    ("child_5", "child", "Anak"),
    ("child_6", "child", "Anak"),
    ("child_7", "child", "Anak"),
    ("child_8", "child", "Anak"),
    ("father", "father", "Bapa"),
    ("mother", "mother", "Ibu"),
    ("father_in_law", "father_in_law", "Bapa Mertua"),
    ("mother_in_law", "mother_in_law", "Ibu Mertua"),
)


def application_member_number(application_id: int) -> str:
    return f"KA-{application_id:05d}"


def derive_legacy_dependents(member: LegacyMember) -> list[DependentView]:
    """Materialise dependents from a legacy member's non-empty named slots."""
    dependents = []
    for attr, relationship, label in LEGACY_DEPENDENT_SLOTS:
        name = getattr(member, attr, None)
        if name and str(name).strip():
            dependents.append(
                DependentView(relationship=relationship, label=label, name=str(name).strip())
            )
    return dependents


def new_dependent_views(dependents: Iterable[Dependent]) -> list[DependentView]:
    views = []
    for dependent in dependents:
        relationship, label = NEW_RELATIONSHIP_VIEWS.get(
            dependent.relation, (str(dependent.relation), str(dependent.relation))
        )
        views.append(
            DependentView(relationship=relationship, label=label, name=dependent.full_name)
        )
    return views


def merge_dependents(
    new_dependents: Iterable[Dependent], legacy_member: Optional[LegacyMember]
) -> list[DependentView]:
    """New-schema dependents win; legacy slots are only a fallback."""
    views = new_dependent_views(new_dependents)
    if not views and legacy_member is not None:
        views = derive_legacy_dependents(legacy_member)
    return views


def normalize_payment_status(status, source: str) -> str:
    """Map a stored payment status onto the merged vocabulary.

    New-schema ``approved`` means the same thing as legacy ``paid``.
    """
    value = getattr(status, "value", status)
    if source == "new" and value == PaymentStatus.APPROVED.value:
        return PAID
    return value


def merge_payments(
    new_payments: Sequence[Payment], legacy_payments: Sequence[LegacyPayment]
) -> list[PaymentEntry]:
    """Combine both payment histories, newest year first, tagged by source."""
    entries = [
        PaymentEntry(
            year=p.year,
            amount=float(p.amount or 0),
            receipt_number=p.receipt_number,
            status=normalize_payment_status(p.status, "new"),
            source="new",
        )
        for p in new_payments
    ]
    entries.extend(
        PaymentEntry(
            year=p.year,
            amount=float(p.amount or 0),
            receipt_number=p.receipt_number,
            status=normalize_payment_status(p.status, "old"),
            source="old",
        )
        for p in legacy_payments
    )
    # Stable sort keeps same-year entries in source order
    entries.sort(key=lambda entry: entry.year, reverse=True)
    return entries


def payment_status_label(latest_paid_year: Optional[int], current_year: int) -> str:
    if latest_paid_year is None:
        return LABEL_NO_PAYMENT
    if latest_paid_year >= current_year:
        return LABEL_CURRENT
    return f"Tertunggak {current_year - latest_paid_year} Tahun"


def summarize_payments(
    entries: Sequence[PaymentEntry],
    *,
    current_year: int,
    dependent_count: int,
    pending_count: int,
) -> PaymentSummary:
    paid = [entry for entry in entries if entry.status in PAID_EQUIVALENT]
    latest_paid_year = max((entry.year for entry in paid), default=None)
    total_paid = sum((Decimal(str(entry.amount)) for entry in paid), Decimal("0"))

    return PaymentSummary(
        total_paid=float(total_paid),
        latest_paid_year=latest_paid_year,
        payment_status_label=payment_status_label(latest_paid_year, current_year),
        dependent_count=dependent_count,
        pending_count=pending_count,
    )


def count_pending(new_payments: Sequence[Payment]) -> int:
    return sum(1 for p in new_payments if p.status == PaymentStatus.PENDING)


def build_profile(
    application: MembershipApplication,
    ic_number: str,
    legacy_member: Optional[LegacyMember],
) -> MemberProfile:
    """Display profile for a new-schema match.

    The legacy record is the historical source of truth for display fields, so
    each of its non-empty values overrides the application's.
    """
    if legacy_member is None:
        return MemberProfile(
            ic_number=ic_number,
            member_number=application_member_number(application.id),
            name=application.name,
            address=application.address,
            phone=application.mobile_phone,
            email=application.email,
            registered_on=application.registered_on,
            status=ACTIVE_STATUS_LABEL,
        )

    return MemberProfile(
        ic_number=ic_number,
        member_number=legacy_member.member_number
        or application_member_number(application.id),
        name=legacy_member.name or application.name,
        address=legacy_member.address or application.address,
        phone=legacy_member.phone or application.mobile_phone,
        email=legacy_member.email or application.email,
        registered_on=legacy_member.registered_on or application.registered_on,
        status=getattr(legacy_member.status, "value", legacy_member.status)
        or ACTIVE_STATUS_LABEL,
    )


def build_legacy_profile(member: LegacyMember) -> MemberProfile:
    return MemberProfile(
        ic_number=member.ic_number,
        member_number=member.member_number,
        name=member.name,
        address=member.address,
        phone=member.phone,
        email=member.email,
        registered_on=member.registered_on,
        status=getattr(member.status, "value", member.status) or ACTIVE_STATUS_LABEL,
    )
