"""Khairat Service models package.

Re-exports all models and enums so that SQLAlchemy's mapper registry sees
every model class on import and Alembic can import a single module.

Model definitions are split across:
  - models/application.py: new-schema applications, dependents, payments
  - models/legacy.py: legacy spreadsheet members, payments, upload log
"""

from services.khairat_service.models.application import (  # noqa: F401
    Dependent,
    MembershipApplication,
    Payment,
)
from services.khairat_service.models.enums import (  # noqa: F401
    ApplicationStatus,
    DecisionAction,
    DependentRelationship,
    FeeType,
    LegacyMemberStatus,
    LegacyPaymentStatus,
    PaymentStatus,
    enum_values,
)
from services.khairat_service.models.legacy import (  # noqa: F401
    LegacyMember,
    LegacyPayment,
    UploadAudit,
)

__all__ = [
    "ApplicationStatus",
    "DecisionAction",
    "Dependent",
    "DependentRelationship",
    "FeeType",
    "LegacyMember",
    "LegacyMemberStatus",
    "LegacyPayment",
    "LegacyPaymentStatus",
    "MembershipApplication",
    "Payment",
    "PaymentStatus",
    "UploadAudit",
    "enum_values",
]
