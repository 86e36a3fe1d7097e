"""Unit tests for cross-schema dependent/payment merge rules."""

from decimal import Decimal

import pytest
from services.khairat_service.models import (
    LegacyPaymentStatus,
    PaymentStatus,
)
from services.khairat_service.services.merge import (
    build_profile,
    derive_legacy_dependents,
    merge_dependents,
    merge_payments,
    payment_status_label,
    summarize_payments,
)
from tests.factories import (
    ApplicationFactory,
    DependentFactory,
    LegacyMemberFactory,
    LegacyPaymentFactory,
    PaymentFactory,
)

# ---------------------------------------------------------------------------
# Dependents
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_legacy_slots_become_dependents_in_display_order():
    member = LegacyMemberFactory.create(
        spouse="Aminah",
        child_1="Ali",
        child_2="  ",
        child_3="Abu",
        mother_in_law="Fatimah",
    )

    dependents = derive_legacy_dependents(member)

    assert [(d.relationship, d.label, d.name) for d in dependents] == [
        ("spouse", "Pasangan", "Aminah"),
        ("child", "Anak", "Ali"),
        ("child", "Anak", "Abu"),
        ("mother_in_law", "Ibu Mertua", "Fatimah"),
    ]


@pytest.mark.unit
def test_new_dependents_win_over_legacy_slots():
    from services.khairat_service.models import DependentRelationship

    member = LegacyMemberFactory.create(child_1="Legacy Child")
    new = [
        DependentFactory.create(full_name="Zainab", relation=DependentRelationship.SPOUSE),
        DependentFactory.create(
            full_name="Hakim", relation=DependentRelationship.DISABLED_CHILD
        ),
    ]

    dependents = merge_dependents(new, member)

    assert [(d.relationship, d.label, d.name) for d in dependents] == [
        ("spouse", "Isteri", "Zainab"),
        ("disabled_child", "Anak OKU", "Hakim"),
    ]


@pytest.mark.unit
def test_legacy_slots_used_when_no_new_dependents():
    member = LegacyMemberFactory.create(child_1="Ali", child_2="Abu")

    dependents = merge_dependents([], member)

    assert [d.relationship for d in dependents] == ["child", "child"]
    assert merge_dependents([], None) == []


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_payments_merged_newest_first_with_source():
    new = [
        PaymentFactory.create(1, year=2024, status=PaymentStatus.APPROVED),
        PaymentFactory.create(1, year=2025, status=PaymentStatus.PENDING),
    ]
    old = [
        LegacyPaymentFactory.create(1, year=2022),
        LegacyPaymentFactory.create(1, year=2023, status=LegacyPaymentStatus.ARREARS),
    ]

    entries = merge_payments(new, old)

    assert [(e.year, e.status, e.source) for e in entries] == [
        (2025, "pending", "new"),
        (2024, "paid", "new"),
        (2023, "tunggak", "old"),
        (2022, "paid", "old"),
    ]


@pytest.mark.unit
def test_summary_counts_only_paid_entries():
    new = [
        PaymentFactory.create(1, year=2024, amount=Decimal("60.00"), status=PaymentStatus.APPROVED),
        PaymentFactory.create(1, year=2025, status=PaymentStatus.PENDING),
        PaymentFactory.create(1, year=2026, status=PaymentStatus.REJECTED),
    ]
    old = [LegacyPaymentFactory.create(1, year=2022, amount=Decimal("50.00"))]
    entries = merge_payments(new, old)

    summary = summarize_payments(
        entries, current_year=2026, dependent_count=2, pending_count=1
    )

    assert summary.total_paid == 110.0
    assert summary.latest_paid_year == 2024
    assert summary.payment_status_label == "Tertunggak 2 Tahun"
    assert summary.dependent_count == 2
    assert summary.pending_count == 1


@pytest.mark.unit
@pytest.mark.parametrize(
    "latest, label",
    [
        (None, "Belum Ada Bayaran"),
        (2026, "Terkini"),
        (2027, "Terkini"),
        (2025, "Tertunggak 1 Tahun"),
        (2020, "Tertunggak 6 Tahun"),
    ],
)
def test_payment_status_labels(latest, label):
    assert payment_status_label(latest, 2026) == label


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_profile_prefers_legacy_fields(cipher):
    application = ApplicationFactory.create(cipher, id=7, name="Ahmad", address="Baru")
    member = LegacyMemberFactory.create(
        name="AHMAD BIN ABDULLAH", address=None, member_number="A0101"
    )

    profile = build_profile(application, "800101125555", member)

    assert profile.name == "AHMAD BIN ABDULLAH"
    assert profile.address == "Baru"
    assert profile.member_number == "A0101"
    assert profile.status == "aktif"


@pytest.mark.unit
def test_profile_member_number_fallback(cipher):
    application = ApplicationFactory.create(cipher, id=7)

    profile = build_profile(application, "800101125555", None)

    assert profile.member_number == "KA-00007"
    assert profile.ic_number == "800101125555"
