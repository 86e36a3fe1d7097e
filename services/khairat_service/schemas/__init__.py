"""Khairat Service schemas package."""

from services.khairat_service.schemas.main import (  # noqa: F401
    ActionResponse,
    ApplicationCreate,
    ApplicationDetailResponse,
    ApplicationListItem,
    DecisionRequest,
    DependentCreate,
    DependentResponse,
    DependentView,
    ImportResponse,
    ImportStats,
    LegacySchemaMatch,
    LegacyStats,
    MemberProfile,
    NewSchemaMatch,
    NoMatch,
    NotificationPayload,
    PaymentCreate,
    PaymentEntry,
    PaymentResponse,
    PaymentReviewRequest,
    PaymentSummary,
    PurgeCounts,
    PurgeResponse,
    SearchResult,
    SubmitResponse,
    UploadAuditResponse,
    UploadHistoryResponse,
)
