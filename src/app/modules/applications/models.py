"""
Application Models

Database models for incubation applications and the approval tokens
that let a reviewer approve or reject an application from an email link.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Index, String, Text, func
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class ApplicationStatus(str, enum.Enum):
    """Lifecycle status of an application. APPROVED and REJECTED are terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApprovalAction(str, enum.Enum):
    """The decision an approval token applies when redeemed."""

    APPROVE = "approve"
    REJECT = "reject"

    @property
    def target_status(self) -> ApplicationStatus:
        if self is ApprovalAction.APPROVE:
            return ApplicationStatus.APPROVED
        return ApplicationStatus.REJECTED


class CompanyType(str, enum.Enum):
    MSME = "MSME"
    PVT_LTD = "Pvt Ltd"
    OTHERS = "Others"


class TeamSize(str, enum.Enum):
    SOLO = "1"
    FROM_2_TO_5 = "2-5"
    FROM_6_TO_10 = "6-10"
    OVER_10 = "10+"


class AcquisitionSource(str, enum.Enum):
    """How the applicant heard about the programme."""

    SOCIAL_MEDIA = "Social Media"
    REFERRAL = "Friend/Referral"
    EVENT = "Event"
    WEBSITE = "Website"
    OTHER = "Other"


class Expectation(str, enum.Enum):
    """What the applicant expects from the incubation programme."""

    FUNDING_SUPPORT = "Funding Support"
    MENTORSHIP = "Mentorship"
    OFFICE_SPACE = "Office Space"
    NETWORKING = "Networking Opportunities"
    LEGAL_SUPPORT = "Legal Support"
    MARKETING_SUPPORT = "Marketing Support"
    TECHNICAL_SUPPORT = "Technical Support"
    BUSINESS_DEVELOPMENT = "Business Development"


class Application(Base):
    """
    A submitted incubation application.

    Created in PENDING status by the submission endpoint. Its status is
    only ever changed by redeeming an approval token.
    """

    __tablename__ = "applications"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Founder details
    founder_name: Mapped[str] = mapped_column(String(200), nullable=False)
    startup_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(30), nullable=False)

    # Company
    company_type: Mapped[str] = mapped_column(String(50), nullable=False)
    team_size: Mapped[str] = mapped_column(String(20), nullable=False)
    source: Mapped[str] = mapped_column(String(50), nullable=False)
    coupon_code: Mapped[str] = mapped_column(String(100), nullable=False)

    # Incubation info (free-text centre name, resolved at issuance time)
    incubation_centre: Mapped[str] = mapped_column(String(200), nullable=False)
    registration_certificate_url: Mapped[str | None] = mapped_column(
        String(1000), nullable=True
    )
    incubation_letter_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    website: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Startup idea
    idea_description: Mapped[str] = mapped_column(Text, nullable=False)
    expectations: Mapped[list] = mapped_column(JSON, nullable=False)
    challenges: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Review
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(ApplicationStatus, name="application_status", values_callable=_enum_values),
        nullable=False,
        default=ApplicationStatus.PENDING,
    )
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_applications_status", "status"),
        Index("ix_applications_email", "email"),
        Index("ix_applications_created_at", "created_at"),
    )


class ApprovalToken(Base):
    """
    Single-use, time-limited approve/reject token.

    Two are issued per application. Only the SHA-256 digest of the token
    is stored; the plain value exists only in the reviewer's email links.
    Tokens are never deleted, so the table doubles as an audit trail.

    application_id is a plain column (no foreign key): a token may outlive
    its application, and redemption reports that case explicitly.
    """

    __tablename__ = "approval_tokens"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    application_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    token: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    action: Mapped[ApprovalAction] = mapped_column(
        Enum(ApprovalAction, name="approval_action", values_callable=_enum_values),
        nullable=False,
    )

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_approval_tokens_application_id", "application_id"),
    )
