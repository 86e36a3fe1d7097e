"""
Model factories for creating valid test data.

Every factory produces a valid, insertable SQLAlchemy model instance.
Override any field via kwargs. Factories for new-schema rows take the
``cipher`` used by the test so IC numbers are stored encrypted, exactly as
the lifecycle service stores them.

Usage:
    application = ApplicationFactory.create(cipher, ic_number="800101125555")
    db_session.add(application)
    await db_session.commit()
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _receipt() -> str:
    return f"R-{uuid.uuid4().hex[:6].upper()}"


# ---------------------------------------------------------------------------
# New schema
# ---------------------------------------------------------------------------


class ApplicationFactory:
    @staticmethod
    def create(cipher, ic_number: str = "800101125555", **overrides):
        from services.khairat_service.models import (
            ApplicationStatus,
            FeeType,
            MembershipApplication,
        )

        defaults = {
            "name": "Ahmad bin Abdullah",
            "ic_number": cipher.encrypt(ic_number),
            "age": 45,
            "address": "No 12, Jalan Masjid, 43000 Kajang",
            "mobile_phone": "0123456789",
            "email": None,
            "fee_type": FeeType.MEMBERSHIP,
            "receipt_number": _receipt(),
            "amount_paid": Decimal("50.00"),
            "registered_on": date(2024, 1, 15),
            "status": ApplicationStatus.PENDING,
            # Loaded collection, so async code never triggers a lazy load
            "dependents": [],
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return MembershipApplication(**defaults)


class DependentFactory:
    @staticmethod
    def create(**overrides):
        from services.khairat_service.models import Dependent, DependentRelationship

        defaults = {
            "full_name": "Siti binti Ahmad",
            "ic_number": None,
            "age": 12,
            "relation": DependentRelationship.CHILD,
        }
        defaults.update(overrides)
        return Dependent(**defaults)


class PaymentFactory:
    @staticmethod
    def create(application_id: int, **overrides):
        from services.khairat_service.models import Payment, PaymentStatus

        defaults = {
            "application_id": application_id,
            "year": 2024,
            "amount": Decimal("50.00"),
            "receipt_number": _receipt(),
            "status": PaymentStatus.PENDING,
        }
        defaults.update(overrides)
        return Payment(**defaults)


# ---------------------------------------------------------------------------
# Legacy schema
# ---------------------------------------------------------------------------


class LegacyMemberFactory:
    @staticmethod
    def create(**overrides):
        from services.khairat_service.models import LegacyMember, LegacyMemberStatus

        defaults = {
            "ic_number": "750505105555",
            "member_number": "A0101",
            "name": "Ismail bin Hassan",
            "address": "Lot 5, Kampung Sungai Tangkas",
            "phone": "0198765432",
            "registered_on": date(2010, 3, 1),
            "status": LegacyMemberStatus.ACTIVE,
        }
        defaults.update(overrides)
        return LegacyMember(**defaults)


class LegacyPaymentFactory:
    @staticmethod
    def create(member_id: int, **overrides):
        from services.khairat_service.models import LegacyPayment, LegacyPaymentStatus

        defaults = {
            "member_id": member_id,
            "year": 2022,
            "amount": Decimal("50.00"),
            "receipt_number": "1001",
            "status": LegacyPaymentStatus.PAID,
        }
        defaults.update(overrides)
        return LegacyPayment(**defaults)


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class FakeChannel:
    """Notification channel that records calls instead of talking to a provider."""

    def __init__(self, name, configured=True, needs_email=False, fail_with=None):
        self.name = name
        self.configured = configured
        self.needs_email = needs_email
        self.fail_with = fail_with
        self.approvals = []
        self.rejections = []

    def is_configured(self) -> bool:
        return self.configured

    def accepts(self, payload) -> bool:
        return bool(payload.email) if self.needs_email else True

    async def notify_approval(self, payload) -> bool:
        self.approvals.append(payload)
        if self.fail_with:
            raise self.fail_with
        return True

    async def notify_rejection(self, payload, reason) -> bool:
        self.rejections.append((payload, reason))
        if self.fail_with:
            raise self.fail_with
        return True
