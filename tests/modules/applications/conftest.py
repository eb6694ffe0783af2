"""
Fixtures for applications tests.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from app.core.email import NotificationDispatcher
from app.modules.applications.models import (
    AcquisitionSource,
    Application,
    ApplicationStatus,
    ApprovalAction,
    ApprovalToken,
    CompanyType,
    Expectation,
    TeamSize,
)
from app.modules.applications.schemas import ApplicationCreate
from app.modules.incubation_centres.models import IncubationCentre


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    db.add_all = MagicMock()
    return db


@pytest.fixture
def mock_notifier():
    """Dispatcher double: dispatch is synchronous and records requests."""
    notifier = MagicMock(spec=NotificationDispatcher)
    notifier.dispatch = MagicMock()
    return notifier


@pytest.fixture
def sample_application_create():
    """A valid submission."""
    return ApplicationCreate(
        founder_name="Asha Rao",
        startup_name="GreenLoop",
        email="asha@greenloop.in",
        phone="+919876543210",
        company_type=CompanyType.PVT_LTD,
        team_size=TeamSize.FROM_2_TO_5,
        source=AcquisitionSource.EVENT,
        coupon_code="DREAM2026",
        incubation_centre="Bangalore Hub",
        website="https://greenloop.in",
        idea_description="Reusable packaging logistics for grocery delivery.",
        expectations=[Expectation.MENTORSHIP, Expectation.FUNDING_SUPPORT],
        challenges="Scaling reverse logistics",
    )


@pytest.fixture
def sample_centre():
    """A registered incubation centre."""
    centre = MagicMock(spec=IncubationCentre)
    centre.id = uuid4()
    centre.name = "Bangalore Hub"
    centre.admin_email = "reviewer@bangalorehub.org"
    centre.created_at = datetime.now(UTC)
    return centre


@pytest.fixture
def sample_application_model():
    """A pending application."""
    app = MagicMock(spec=Application)
    app.id = uuid4()
    app.founder_name = "Asha Rao"
    app.startup_name = "GreenLoop"
    app.email = "asha@greenloop.in"
    app.phone = "+919876543210"
    app.company_type = "Pvt Ltd"
    app.team_size = "2-5"
    app.source = "Event"
    app.coupon_code = "DREAM2026"
    app.incubation_centre = "Bangalore Hub"
    app.registration_certificate_url = None
    app.incubation_letter_url = None
    app.website = "https://greenloop.in"
    app.idea_description = "Reusable packaging logistics for grocery delivery."
    app.expectations = ["Mentorship", "Funding Support"]
    app.challenges = "Scaling reverse logistics"
    app.status = ApplicationStatus.PENDING
    app.approved_at = None
    app.rejected_at = None
    app.created_at = datetime.now(UTC)
    app.updated_at = datetime.now(UTC)
    return app


def _make_token(application_id, action, *, expires_in=timedelta(days=7), used=False):
    token = MagicMock(spec=ApprovalToken)
    token.id = uuid4()
    token.application_id = application_id
    token.token = "hashed_token_value"
    token.action = action
    token.expires_at = datetime.now(UTC) + expires_in
    token.used = used
    token.used_at = datetime.now(UTC) if used else None
    token.created_at = datetime.now(UTC)
    return token


@pytest.fixture
def approve_token(sample_application_model):
    """A live approve token for the sample application."""
    return _make_token(sample_application_model.id, ApprovalAction.APPROVE)


@pytest.fixture
def reject_token(sample_application_model):
    """A live reject token for the sample application."""
    return _make_token(sample_application_model.id, ApprovalAction.REJECT)


@pytest.fixture
def expired_token(sample_application_model):
    """An approve token that expired an hour ago."""
    return _make_token(
        sample_application_model.id, ApprovalAction.APPROVE, expires_in=timedelta(hours=-1)
    )


@pytest.fixture
def used_token(sample_application_model):
    """An approve token that has already been redeemed."""
    return _make_token(sample_application_model.id, ApprovalAction.APPROVE, used=True)
