"""Pydantic models for clinic API payloads and client state.

Wire payloads use camelCase (and Mongo-style ``_id``); every model accepts
both the wire names and the Python field names.
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


class Role(str, Enum):
    """Staff roles known to the clinic API."""
    DOCTOR = "doctor"
    COUNTER = "counter"


class VisitStatus(str, Enum):
    """Visit lifecycle: registered at the counter, then moved by the doctor."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class VisitType(str, Enum):
    REGULAR = "regular"
    EMERGENCY = "emergency"


class PaymentStatus(str, Enum):
    """Result of a checkout attempt."""
    SUCCESS = "success"
    CANCELLED = "cancelled"
    ERROR = "error"


class WireModel(BaseModel):
    """Base for models parsed from API responses."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def _normalize_role(data: Any) -> Any:
    """Accept ``roles: [...]`` from the server when ``role`` is missing."""
    if isinstance(data, dict) and not data.get("role"):
        roles = data.get("roles") or []
        if roles:
            data = {**data, "role": roles[0]}
    return data


class Identity(WireModel):
    """Identity returned by GET /auth/me and PUT /auth/profile/update."""
    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    email: str
    role: Role
    name: Optional[str] = None
    clinic_name: Optional[str] = Field(None, alias="clinicName")
    clinic_address: Optional[str] = Field(None, alias="clinicAddress")
    profile_image: Optional[str] = Field(None, alias="profileImage")
    payment_status: Optional[str] = Field(None, alias="paymentStatus")

    @model_validator(mode="before")
    @classmethod
    def role_from_list(cls, data):
        return _normalize_role(data)


class Session(Identity):
    """
    The authenticated actor held by the client.

    A Session only exists while a non-empty access token is persisted;
    SessionStore keeps the two in step.
    """
    model_config = ConfigDict(frozen=True)

    access_token: str = Field(..., min_length=1, alias="accessToken")
    refresh_token: Optional[str] = Field(None, alias="refreshToken")

    @classmethod
    def from_identity(
        cls,
        identity: Identity,
        access_token: str,
        refresh_token: Optional[str] = None
    ) -> "Session":
        """Build a session from an identity lookup plus the stored tokens."""
        return cls(
            **identity.model_dump(),
            access_token=access_token,
            refresh_token=refresh_token,
        )

    def with_profile(self, identity: Identity) -> "Session":
        """Replace display fields from ``identity`` and keep both tokens."""
        return self.model_copy(update={
            "name": identity.name,
            "clinic_name": identity.clinic_name,
            "clinic_address": identity.clinic_address,
            "profile_image": identity.profile_image,
            "payment_status": identity.payment_status,
        })

    @property
    def display_name(self) -> str:
        return self.name or self.email


class LoginResult(WireModel):
    """Body of POST /auth/login."""
    access_token: str = Field(..., min_length=1, alias="accessToken")
    refresh_token: Optional[str] = Field(None, alias="refreshToken")
    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    email: str
    role: Role
    name: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def role_from_list(cls, data):
        return _normalize_role(data)

    def to_session(self) -> Session:
        return Session(
            id=self.id,
            email=self.email,
            role=self.role,
            name=self.name,
            access_token=self.access_token,
            refresh_token=self.refresh_token,
        )


class Visit(WireModel):
    """One patient's episode for a clinic day. Never mutated client-side."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    patient_name: str = Field(..., alias="patientName")
    age: int
    phone: str
    appointment_number: int = Field(..., alias="appointmentNumber")
    status: VisitStatus = VisitStatus.PENDING
    visit_type: Optional[VisitType] = Field(None, alias="visitType")
    date: Optional[str] = None
    diagnosis: Optional[str] = None
    prescription: Optional[str] = None

    @property
    def status_label(self) -> str:
        """Label shown on today's patient list."""
        return {
            VisitStatus.COMPLETED: "Completed",
            VisitStatus.IN_PROGRESS: "With Doctor",
        }.get(self.status, "Waiting")


class QueueSnapshot(WireModel):
    """
    Point-in-time view of the clinic queue (GET /visits/status).

    Replaced wholesale on each applied poll. ``total_today`` is taken from
    the server verbatim.
    """
    model_config = ConfigDict(frozen=True)

    current_patient: Optional[Visit] = Field(None, alias="currentPatient")
    completed_list: List[Visit] = Field(default_factory=list, alias="completedList")
    total_today: int = Field(0, alias="totalToday")

    @field_validator("completed_list", mode="before")
    @classmethod
    def none_is_empty(cls, v):
        return v or []

    @field_validator("total_today", mode="before")
    @classmethod
    def none_is_zero(cls, v):
        return v or 0


class CreatedVisit(WireModel):
    """Body of POST /visits/create."""
    appointment_number: int = Field(..., alias="appointmentNumber")
    id: Optional[str] = Field(None, validation_alias=AliasChoices("_id", "id"))


class Template(WireModel):
    """Saved prescription/medicine template."""
    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    name: str
    image_url: Optional[str] = Field(None, alias="imageUrl")


class StaffMember(WireModel):
    """Counter staff account managed by the doctor."""
    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    name: str
    email: str
    is_active: bool = Field(True, alias="isActive")


class PaymentOutcome(BaseModel):
    """Single result of a checkout attempt."""
    status: PaymentStatus
    order_id: Optional[str] = None
    error: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
