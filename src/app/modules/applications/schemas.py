"""
Application Schemas

Pydantic schemas for request validation and response serialization.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from app.modules.applications.models import (
    AcquisitionSource,
    ApplicationStatus,
    ApprovalAction,
    CompanyType,
    Expectation,
    TeamSize,
)

# ============================================
# Submission
# ============================================


class ApplicationCreate(BaseModel):
    """Request body for POST /applications."""

    # Founder details
    founder_name: str = Field(..., min_length=1, max_length=200)
    startup_name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=30)
    company_type: CompanyType
    team_size: TeamSize
    source: AcquisitionSource
    coupon_code: str = Field(..., min_length=1, max_length=100)

    # Incubation info
    incubation_centre: str = Field(..., min_length=1, max_length=200)
    registration_certificate_url: str | None = Field(None, max_length=1000)
    incubation_letter_url: str | None = Field(None, max_length=1000)
    website: str | None = Field(None, max_length=500)

    # Startup idea
    idea_description: str = Field(..., min_length=1, max_length=5000)
    expectations: list[Expectation] = Field(..., min_length=1)
    challenges: str | None = Field(None, max_length=5000)

    @model_validator(mode="after")
    def validate_application(self) -> "ApplicationCreate":
        """Reject whitespace-only required text and collapse repeated expectations."""
        for field_name in (
            "founder_name",
            "startup_name",
            "phone",
            "coupon_code",
            "incubation_centre",
            "idea_description",
        ):
            value = getattr(self, field_name).strip()
            if not value:
                raise ValueError(f"{field_name} must not be blank")
            setattr(self, field_name, value)

        self.expectations = list(dict.fromkeys(self.expectations))

        if self.challenges is not None and not self.challenges.strip():
            self.challenges = None

        return self


class ApplicationSubmitResponse(BaseModel):
    """Response after submitting an application."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    status: ApplicationStatus
    email: str
    message: str = "Application submitted. You will receive an email once it has been reviewed."


class ApplicationStatusResponse(BaseModel):
    """Applicant-facing status of an application."""

    id: UUID
    startup_name: str
    status: ApplicationStatus
    status_label: str
    status_description: str
    submitted_at: datetime
    approved_at: datetime | None = None
    rejected_at: datetime | None = None


# ============================================
# Admin Dashboard
# ============================================


class ApplicationListItem(BaseModel):
    """Row in the admin applications table."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    founder_name: str
    startup_name: str
    email: str
    company_type: str
    team_size: str
    incubation_centre: str
    status: ApplicationStatus
    created_at: datetime
    approved_at: datetime | None = None
    rejected_at: datetime | None = None


class ApplicationListResponse(BaseModel):
    """Paginated list of applications."""

    applications: list[ApplicationListItem]
    total: int = Field(..., description="Total applications matching the filters")
    skip: int
    limit: int


class DashboardStats(BaseModel):
    """Counts shown on the admin dashboard tabs."""

    all: int = Field(..., ge=0)
    pending: int = Field(..., ge=0)
    approved: int = Field(..., ge=0)
    rejected: int = Field(..., ge=0)


class ApprovalTokenAudit(BaseModel):
    """Audit view of an approval token. The token value itself is never exposed."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    action: ApprovalAction
    expires_at: datetime
    used: bool
    used_at: datetime | None = None
    created_at: datetime


class ApplicationDetailResponse(BaseModel):
    """Complete application record for admin review."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    founder_name: str
    startup_name: str
    email: str
    phone: str
    company_type: str
    team_size: str
    source: str
    coupon_code: str
    incubation_centre: str
    registration_certificate_url: str | None = None
    incubation_letter_url: str | None = None
    website: str | None = None
    idea_description: str
    expectations: list[str]
    challenges: str | None = None
    status: ApplicationStatus
    approved_at: datetime | None = None
    rejected_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    tokens: list[ApprovalTokenAudit] = Field(default_factory=list)


class ResendReviewRequestResponse(BaseModel):
    """Response after reissuing the approve/reject links."""

    id: UUID
    expires_at: datetime
    message: str = "A new review request has been sent to the incubation centre."
