"""Enum definitions for khairat service models.

Persisted values are the Malay codes used by the fund's paperwork and the
legacy spreadsheets; member names are English for readability in code.
"""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class FeeType(str, enum.Enum):
    MEMBERSHIP = "keahlian"  # one-time membership fee
    ANNUAL = "tahunan"
    SECOND_SPOUSE = "isteri_kedua"


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DependentRelationship(str, enum.Enum):
    SPOUSE = "isteri"
    CHILD = "anak"
    DISABLED_CHILD = "anak_oku"


class LegacyMemberStatus(str, enum.Enum):
    ACTIVE = "aktif"
    DECEASED = "meninggal"
    MOVED = "pindah"
    SUSPENDED = "gantung"


class LegacyPaymentStatus(str, enum.Enum):
    PAID = "paid"
    ARREARS = "tunggak"
    PREPAID = "prabayar"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DecisionAction(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"
