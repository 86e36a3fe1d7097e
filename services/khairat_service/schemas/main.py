from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# --- Application submission & review ---


class DependentCreate(BaseModel):
    # Loosely typed on purpose: required-field and enum checks happen in the
    # lifecycle service so the caller gets the fund's own error messages.
    full_name: Optional[str] = None
    ic_number: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0, le=150)
    relationship: Optional[str] = None


class ApplicationCreate(BaseModel):
    name: Optional[str] = None
    ic_number: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0, le=150)
    address: Optional[str] = None
    home_phone: Optional[str] = None
    mobile_phone: Optional[str] = None
    email: Optional[str] = None
    fee_type: Optional[str] = None
    receipt_number: Optional[str] = None
    receipt_file: Optional[str] = None  # opaque path from the upload service
    amount_paid: Optional[Decimal] = Field(default=None, gt=0)
    dependents: list[DependentCreate] = Field(default_factory=list)


class SubmitResponse(BaseModel):
    success: bool = True
    message: str
    id: int


class DecisionRequest(BaseModel):
    action: Optional[str] = None  # approve | reject
    reject_reason: Optional[str] = Field(default=None, max_length=1000)


class ActionResponse(BaseModel):
    success: bool = True
    message: str


class DependentResponse(BaseModel):
    id: int
    full_name: str
    ic_number: Optional[str] = None
    age: Optional[int] = None
    relationship: str
    created_at: Optional[datetime] = None


class ApplicationDetailResponse(BaseModel):
    id: int
    name: str
    ic_number: str
    age: Optional[int] = None
    address: str
    home_phone: Optional[str] = None
    mobile_phone: str
    email: Optional[str] = None
    fee_type: str
    receipt_number: str
    receipt_file: Optional[str] = None
    amount_paid: float
    registered_on: Optional[date] = None
    status: str
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    reject_reason: Optional[str] = None
    linked_legacy_member_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    dependents: list[DependentResponse] = Field(default_factory=list)


class ApplicationListItem(BaseModel):
    id: int
    name: str
    ic_number: Optional[str] = None  # None when the stored value cannot be decrypted
    mobile_phone: str
    fee_type: str
    receipt_number: str
    amount_paid: float
    status: str
    registered_on: Optional[date] = None
    dependent_count: int = 0
    created_at: Optional[datetime] = None


# --- New-schema payments ---


class PaymentCreate(BaseModel):
    year: int = Field(..., ge=2000, le=2100)
    amount: Decimal = Field(..., gt=0)
    receipt_number: Optional[str] = Field(default=None, max_length=64)


class PaymentReviewRequest(BaseModel):
    action: Optional[str] = None  # approve | reject


class PaymentResponse(BaseModel):
    id: int
    application_id: int
    year: int
    amount: float
    receipt_number: Optional[str] = None
    status: str
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# --- Legacy spreadsheet import ---


class ImportStats(BaseModel):
    inserted: int = 0
    updated: int = 0
    errors: int = 0
    total: int = 0


class ImportResponse(BaseModel):
    success: bool = True
    message: str
    stats: ImportStats


class UploadAuditResponse(BaseModel):
    id: int
    filename: str
    uploaded_by: Optional[str] = None
    total_records: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class LegacyStats(BaseModel):
    total_members: int = 0
    active_members: int = 0
    deceased_members: int = 0
    moved_members: int = 0


class UploadHistoryResponse(BaseModel):
    uploads: list[UploadAuditResponse]
    stats: LegacyStats


class PurgeCounts(BaseModel):
    payments: int = 0
    members: int = 0
    uploads: int = 0


class PurgeResponse(BaseModel):
    success: bool = True
    message: str
    deleted: PurgeCounts


# --- Cross-schema search ---


class DependentView(BaseModel):
    relationship: str  # spouse, child, disabled_child, father, ...
    label: str  # display label, e.g. "Anak"
    name: str


class MemberProfile(BaseModel):
    ic_number: str
    member_number: Optional[str] = None
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    registered_on: Optional[date] = None
    status: str


class PaymentEntry(BaseModel):
    year: int
    amount: float
    receipt_number: Optional[str] = None
    status: str
    source: Literal["new", "old"]


class PaymentSummary(BaseModel):
    total_paid: float = 0
    latest_paid_year: Optional[int] = None
    payment_status_label: str
    dependent_count: int = 0
    pending_count: int = 0


class NewSchemaMatch(BaseModel):
    """Resolved from an approved application (new schema)."""

    found: Literal[True] = True
    source: Literal["khairat_ahli"] = "khairat_ahli"
    ahli_id: int
    member_id: Optional[int] = None
    member: MemberProfile
    dependents: list[DependentView]
    payments: list[PaymentEntry]
    summary: PaymentSummary


class LegacySchemaMatch(BaseModel):
    """Resolved from the legacy spreadsheet data."""

    found: Literal[True] = True
    source: Literal["khairat_members"] = "khairat_members"
    member_id: int
    ahli_id: Optional[int] = None
    member: MemberProfile
    dependents: list[DependentView]
    payments: list[PaymentEntry]
    summary: PaymentSummary


class NoMatch(BaseModel):
    found: Literal[False] = False
    source: None = None
    member_id: None = None
    ahli_id: None = None
    message: str


SearchResult = Union[NewSchemaMatch, LegacySchemaMatch, NoMatch]


# --- Notifications ---


class NotificationPayload(BaseModel):
    """What a channel needs to tell an applicant about a decision."""

    application_id: int
    name: str
    ic_number: str  # plaintext
    mobile_phone: str
    email: Optional[str] = None
    fee_type: str
    receipt_number: str
    amount: float
    registered_on: Optional[date] = None
    dependent_count: int = 0
