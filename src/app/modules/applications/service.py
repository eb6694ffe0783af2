"""
Applications Service Layer

Business logic for the incubation application workflow.
Orchestrates repository operations, approval tokens and notifications.

This module implements:
1. Submission Flow:
   - Resolve the chosen incubation centre
   - Create the application in PENDING status
   - Send the submission confirmation to the applicant
   - Issue the approve/reject token pair (exactly once per submission)

2. Token Issuance:
   - Two single-use tokens sharing one expiry (7 days by default)
   - Both persisted in one commit, then emailed to the centre admin as links

3. Token Redemption:
   - Validate (exists, unused, unexpired, application present)
   - Consume the token and write the decision in one transaction
   - Send the decision notice to the applicant

4. Admin Dashboard:
   - List/search/paginate, status counts, detail with token audit
   - Reissue review links for a pending application with no live links

Security considerations:
- Tokens come from secrets.token_urlsafe (256 bits of entropy)
- Only the SHA-256 digest is stored; the plain token lives only in the email
- Token values are never logged
- Notifications run in the background and can never fail a state change
"""

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.email import NotificationDispatcher, NotificationKind, NotificationRequest
from app.modules.applications import repository
from app.modules.applications.models import (
    Application,
    ApplicationStatus,
    ApprovalAction,
    ApprovalToken,
)
from app.modules.applications.schemas import (
    ApplicationCreate,
    ApplicationStatusResponse,
    ApplicationSubmitResponse,
)
from app.modules.incubation_centres.repository import IncubationCentreRepository

logger = logging.getLogger(__name__)

# Constants
TOKEN_LENGTH = 32  # 256 bits of entropy when using token_urlsafe
APPROVAL_PATH = "/handle-approval"


def _hash_token(token: str) -> str:
    """
    Hash a token for storage using SHA-256.

    Args:
        token: The plain text token

    Returns:
        Hex-encoded SHA-256 digest
    """
    return hashlib.sha256(token.encode()).hexdigest()


class ApplicationServiceError(Exception):
    """Base exception for application service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class ApplicationNotFoundError(ApplicationServiceError):
    """Raised when an application is not found."""

    def __init__(self, application_id: UUID | None = None):
        message = (
            f"Application {application_id} not found" if application_id else "Application not found"
        )
        super().__init__(
            message=message,
            error_code="APPLICATION_NOT_FOUND",
            status_code=404,
        )


class IncubationCentreNotFoundError(ApplicationServiceError):
    """Raised when an application names an incubation centre that is not registered."""

    def __init__(self, centre_name: str, status_code: int = 404):
        super().__init__(
            message=f"Incubation centre '{centre_name}' is not registered.",
            error_code="INCUBATION_CENTRE_NOT_FOUND",
            status_code=status_code,
        )


class InvalidTokenError(ApplicationServiceError):
    """Raised when an approval token is missing or unknown."""

    def __init__(self, message: str = "Invalid or expired link."):
        super().__init__(
            message=message,
            error_code="INVALID_TOKEN",
            status_code=400,
        )


class TokenAlreadyUsedError(ApplicationServiceError):
    """Raised when an approval token has already been redeemed."""

    def __init__(self):
        super().__init__(
            message="This link has already been used.",
            error_code="TOKEN_ALREADY_USED",
            status_code=409,
        )


class TokenExpiredError(ApplicationServiceError):
    """Raised when an approval token is past its expiry."""

    def __init__(self):
        super().__init__(
            message="This link has expired.",
            error_code="TOKEN_EXPIRED",
            status_code=410,
        )


class InvalidApplicationStateError(ApplicationServiceError):
    """Raised when an application is not in the expected state for an operation."""

    def __init__(self, message: str, expected_state: str | None = None):
        detail = message
        if expected_state:
            detail = f"{message} Expected state: {expected_state}"
        super().__init__(
            message=detail,
            error_code="INVALID_APPLICATION_STATE",
            status_code=409,
        )


class ApplicationAlreadyDecidedError(ApplicationServiceError):
    """Raised on redemption for a decided application when the pending guard is enabled."""

    def __init__(self, current_status: ApplicationStatus):
        self.current_status = current_status
        super().__init__(
            message=f"This application has already been {current_status.value}.",
            error_code="APPLICATION_ALREADY_DECIDED",
            status_code=409,
        )


class LiveTokensExistError(ApplicationServiceError):
    """Raised when reissuing review links while unexpired, unused links still exist."""

    def __init__(self):
        super().__init__(
            message="This application still has active review links. "
            "They must be used or expire before new ones are issued.",
            error_code="LIVE_TOKENS_EXIST",
            status_code=409,
        )


class TokenIssuanceError(ApplicationServiceError):
    """Raised when approval tokens could not be persisted."""

    def __init__(self, application_id: UUID):
        super().__init__(
            message=f"Could not issue review links for application {application_id}.",
            error_code="TOKEN_ISSUANCE_FAILED",
            status_code=500,
        )


class DecisionPersistenceError(ApplicationServiceError):
    """Raised when a decision could not be written. The token remains unused."""

    def __init__(self):
        super().__init__(
            message="Your decision could not be recorded. Please try the link again.",
            error_code="DECISION_NOT_RECORDED",
            status_code=500,
        )


class InvalidEmailError(ApplicationServiceError):
    """Raised when the provided email doesn't match the application."""

    def __init__(self):
        super().__init__(
            message="Email does not match the application",
            error_code="INVALID_EMAIL",
            status_code=403,
        )


@dataclass
class IssuedTokens:
    """Outcome of a successful issuance. Holds the links, not the stored digests."""

    application_id: UUID
    expires_at: datetime
    approve_url: str
    reject_url: str
    reviewer_email: str


@dataclass
class RedemptionResult:
    application: Application
    action: ApprovalAction
    status: ApplicationStatus
    decided_at: datetime


def _generate_secure_token() -> str:
    """Generate a URL-safe token with TOKEN_LENGTH bytes of entropy."""
    return secrets.token_urlsafe(TOKEN_LENGTH)


def _calculate_token_expiry(issued_at: datetime | None = None) -> datetime:
    """Expiry for a token issued at `issued_at` (defaults to now, UTC)."""
    issued_at = issued_at or datetime.now(UTC)
    return issued_at + timedelta(days=settings.approval_token_ttl_days)


def _as_utc(value: datetime) -> datetime:
    """Stored timestamps are UTC; drivers without timezone support return them naive."""
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def build_approval_link(token: str) -> str:
    """Reviewer link for a plain token: <base>/handle-approval?token=<token>."""
    return f"{settings.approval_base_url}{APPROVAL_PATH}?token={token}"


def _dispatch(notifier: NotificationDispatcher, request: NotificationRequest) -> None:
    """Hand a notification to the dispatcher without letting it affect the caller."""
    try:
        notifier.dispatch(request)
    except Exception as e:
        logger.error(
            f"Could not schedule {request.kind.value} for application "
            f"{request.application_id}: {e}"
        )


def _review_request_data(
    application: Application,
    approve_url: str,
    reject_url: str,
    expires_at: datetime,
) -> dict[str, Any]:
    return {
        "startup_name": application.startup_name,
        "founder_name": application.founder_name,
        "email": application.email,
        "phone": application.phone,
        "company_type": application.company_type,
        "team_size": application.team_size,
        "incubation_centre": application.incubation_centre,
        "idea_description": application.idea_description,
        "expectations": list(application.expectations or []),
        "challenges": application.challenges,
        "approve_url": approve_url,
        "reject_url": reject_url,
        "expires_at": expires_at,
    }


# ============================================
# Token Issuer
# ============================================


async def issue_approval_tokens(
    db: AsyncSession,
    application_id: UUID,
    notifier: NotificationDispatcher,
) -> IssuedTokens:
    """
    Issue the approve/reject token pair for a pending application.

    Both tokens share one expiry and are stored (hashed) in a single
    commit. The review request email carrying the two links is then
    dispatched to the centre admin in the background.

    Args:
        db: Database session
        application_id: Application to issue tokens for
        notifier: Notification dispatcher

    Returns:
        IssuedTokens with the two links and their expiry

    Raises:
        ApplicationNotFoundError: If the application doesn't exist
        InvalidApplicationStateError: If the application is not PENDING
        IncubationCentreNotFoundError: If the application's centre is not registered
        TokenIssuanceError: If the tokens could not be stored (nothing is emailed)
    """
    application = await repository.get_by_id(db, application_id)
    if not application:
        raise ApplicationNotFoundError(application_id)

    if application.status != ApplicationStatus.PENDING:
        logger.warning(
            f"Token issuance refused: application {application_id} is {application.status.value}"
        )
        raise InvalidApplicationStateError(
            "Review links can only be issued for pending applications.",
            expected_state=ApplicationStatus.PENDING.value,
        )

    centre = await IncubationCentreRepository.get_by_name(db, application.incubation_centre)
    if not centre:
        logger.warning(
            f"Token issuance refused: unknown centre '{application.incubation_centre}' "
            f"for application {application_id}"
        )
        raise IncubationCentreNotFoundError(application.incubation_centre)

    approve_token = _generate_secure_token()
    reject_token = _generate_secure_token()
    expires_at = _calculate_token_expiry()

    try:
        await repository.create_token_pair(
            db,
            application_id=application.id,
            approve_token=_hash_token(approve_token),
            reject_token=_hash_token(reject_token),
            expires_at=expires_at,
        )
    except Exception as e:
        logger.exception(f"Failed to store approval tokens for application {application_id}")
        raise TokenIssuanceError(application_id) from e

    logger.info(f"Issued approval tokens for application {application_id}")

    approve_url = build_approval_link(approve_token)
    reject_url = build_approval_link(reject_token)

    _dispatch(
        notifier,
        NotificationRequest(
            application_id=application.id,
            kind=NotificationKind.REVIEW_REQUEST,
            recipient_address=centre.admin_email,
            template_data=_review_request_data(application, approve_url, reject_url, expires_at),
        ),
    )

    return IssuedTokens(
        application_id=application.id,
        expires_at=expires_at,
        approve_url=approve_url,
        reject_url=reject_url,
        reviewer_email=centre.admin_email,
    )


# ============================================
# Submission
# ============================================


async def submit_application(
    db: AsyncSession,
    data: ApplicationCreate,
    notifier: NotificationDispatcher,
) -> ApplicationSubmitResponse:
    """
    Submit a new incubation application.

    1. Resolves the chosen incubation centre (unknown centre -> 400, nothing stored)
    2. Creates the application with PENDING status
    3. Dispatches the submission confirmation to the applicant
    4. Issues the approve/reject tokens and the review request

    Raises:
        IncubationCentreNotFoundError: If the centre is not registered
        TokenIssuanceError: If tokens could not be stored. The application is
            kept and the review request can be reissued from the admin dashboard.
    """
    logger.info(f"Processing application submission for startup: {data.startup_name}")

    centre = await IncubationCentreRepository.get_by_name(db, data.incubation_centre)
    if not centre:
        raise IncubationCentreNotFoundError(data.incubation_centre, status_code=400)

    application = await repository.create(db, data)
    logger.info(f"Created application {application.id} for startup: {data.startup_name}")

    _dispatch(
        notifier,
        NotificationRequest(
            application_id=application.id,
            kind=NotificationKind.SUBMISSION_CONFIRMATION,
            recipient_address=application.email,
            template_data={
                "application_id": str(application.id),
                "founder_name": application.founder_name,
                "startup_name": application.startup_name,
                "incubation_centre": application.incubation_centre,
            },
        ),
    )

    await issue_approval_tokens(db, application.id, notifier)

    return ApplicationSubmitResponse(
        id=application.id,
        status=application.status,
        email=application.email,
    )


# ============================================
# Token Redemption
# ============================================


async def _validate_token(
    db: AsyncSession,
    token_string: str | None,
) -> tuple[ApprovalToken, Application]:
    """
    Validate an approval token and return it with its application.

    Checks run in a fixed order: exists, unused, unexpired, application present.

    Raises:
        InvalidTokenError: If the token is missing or unknown
        TokenAlreadyUsedError: If the token was already redeemed
        TokenExpiredError: If the token has expired
        ApplicationNotFoundError: If the referenced application no longer exists
    """
    if not token_string:
        raise InvalidTokenError("Missing approval token.")

    approval_token = await repository.get_by_token(db, _hash_token(token_string))

    if not approval_token:
        logger.warning("Token validation failed: token not found")
        raise InvalidTokenError()

    if approval_token.used:
        logger.warning(f"Token validation failed: token {approval_token.id} already used")
        raise TokenAlreadyUsedError()

    if datetime.now(UTC) > _as_utc(approval_token.expires_at):
        logger.warning(f"Token validation failed: token {approval_token.id} expired")
        raise TokenExpiredError()

    application = await repository.get_by_id(db, approval_token.application_id)

    if not application:
        logger.error(f"Application not found for token {approval_token.id}")
        raise ApplicationNotFoundError(approval_token.application_id)

    return approval_token, application


async def redeem_token(
    db: AsyncSession,
    token_string: str | None,
    notifier: NotificationDispatcher,
    *,
    enforce_pending: bool | None = None,
) -> RedemptionResult:
    """
    Redeem an approve/reject token from a reviewer link.

    The token is consumed and the decision written in one transaction;
    a concurrent redemption of the same token loses with
    TokenAlreadyUsedError. The decision notice is dispatched afterwards
    and its outcome never affects the result.

    Args:
        db: Database session
        token_string: Plain token from the link
        notifier: Notification dispatcher
        enforce_pending: Refuse redemption unless the application is PENDING.
            Defaults to settings.enforce_pending_on_redemption (off), in which
            case a valid token overwrites an earlier decision.

    Returns:
        RedemptionResult with the updated application

    Raises:
        InvalidTokenError, TokenAlreadyUsedError, TokenExpiredError,
        ApplicationNotFoundError: Token problems, nothing is changed
        ApplicationAlreadyDecidedError: Guard enabled and application already decided
        DecisionPersistenceError: Database failure, token left unused
    """
    approval_token, application = await _validate_token(db, token_string)

    action = ApprovalAction(approval_token.action)
    target_status = action.target_status

    if enforce_pending is None:
        enforce_pending = settings.enforce_pending_on_redemption

    if application.status != ApplicationStatus.PENDING:
        if enforce_pending:
            logger.warning(
                f"Redemption refused: application {application.id} already "
                f"{application.status.value}"
            )
            raise ApplicationAlreadyDecidedError(application.status)
        logger.warning(
            f"Application {application.id} already {application.status.value}; "
            f"overwriting with {target_status.value}"
        )

    # A rollback inside record_decision expires every loaded instance;
    # anything read after it must come from these locals.
    token_id = approval_token.id
    application_id = application.id
    decided_at = datetime.now(UTC)

    try:
        consumed = await repository.record_decision(
            db,
            token_id=token_id,
            application=application,
            status=target_status,
            decided_at=decided_at,
        )
    except Exception as e:
        logger.exception(f"Failed to record decision for application {application_id}")
        raise DecisionPersistenceError() from e

    if not consumed:
        logger.warning(f"Token {token_id} was redeemed concurrently")
        raise TokenAlreadyUsedError()

    logger.info(f"Application {application_id} {target_status.value} via approval link")

    _dispatch(
        notifier,
        NotificationRequest(
            application_id=application_id,
            kind=NotificationKind.DECISION_NOTICE,
            recipient_address=application.email,
            template_data={
                "decision": target_status.value,
                "founder_name": application.founder_name,
                "startup_name": application.startup_name,
                "incubation_centre": application.incubation_centre,
                "decided_at": decided_at,
            },
        ),
    )

    return RedemptionResult(
        application=application,
        action=action,
        status=target_status,
        decided_at=decided_at,
    )


# ============================================
# Applicant Status
# ============================================

STATUS_LABELS = {
    ApplicationStatus.PENDING: "Under Review",
    ApplicationStatus.APPROVED: "Approved",
    ApplicationStatus.REJECTED: "Not Selected",
}

STATUS_DESCRIPTIONS = {
    ApplicationStatus.PENDING: "Your application has been sent to the incubation centre for review.",
    ApplicationStatus.APPROVED: "Congratulations! Your application has been approved.",
    ApplicationStatus.REJECTED: "Your application was not selected for this intake.",
}


async def get_application_status(
    db: AsyncSession,
    application_id: UUID,
    email: str,
) -> ApplicationStatusResponse:
    """
    Get the applicant-facing status of an application.

    The email must match the application's email (case-insensitive).

    Raises:
        ApplicationNotFoundError: If the application doesn't exist
        InvalidEmailError: If the email doesn't match
    """
    application = await repository.get_by_id(db, application_id)

    if not application:
        raise ApplicationNotFoundError(application_id)

    if application.email.strip().lower() != email.strip().lower():
        logger.warning(f"Status lookup with mismatched email for application {application_id}")
        raise InvalidEmailError()

    return ApplicationStatusResponse(
        id=application.id,
        startup_name=application.startup_name,
        status=application.status,
        status_label=STATUS_LABELS[application.status],
        status_description=STATUS_DESCRIPTIONS[application.status],
        submitted_at=application.created_at,
        approved_at=application.approved_at,
        rejected_at=application.rejected_at,
    )


# ============================================
# Admin Dashboard
# ============================================


async def admin_get_applications_list(
    db: AsyncSession,
    *,
    status: ApplicationStatus | None = None,
    search: str | None = None,
    sort_order: str = "desc",
    skip: int = 0,
    limit: int = 20,
) -> dict:
    """
    Get a page of applications for the admin dashboard.

    Returns:
        Dict with applications, total, skip and limit (limit clamped to 1-100)
    """
    limit = max(1, min(limit, 100))
    skip = max(0, skip)

    applications, total = await repository.get_applications_for_admin(
        db,
        status=status,
        search=search.strip() if search else None,
        sort_order=sort_order,
        skip=skip,
        limit=limit,
    )

    return {
        "applications": applications,
        "total": total,
        "skip": skip,
        "limit": limit,
    }


async def admin_get_dashboard_stats(db: AsyncSession) -> dict:
    """Status counts for the dashboard tabs."""
    return await repository.get_dashboard_stats(db)


async def admin_get_application_detail(
    db: AsyncSession,
    application_id: UUID,
) -> tuple[Application, list[ApprovalToken]]:
    """
    Get an application and its token audit trail.

    Raises:
        ApplicationNotFoundError: If the application doesn't exist
    """
    application = await repository.get_by_id(db, application_id)

    if not application:
        raise ApplicationNotFoundError(application_id)

    tokens = await repository.get_tokens_for_application(db, application_id)
    return application, tokens


async def admin_resend_review_request(
    db: AsyncSession,
    application_id: UUID,
    notifier: NotificationDispatcher,
) -> IssuedTokens:
    """
    Issue a fresh token pair for a pending application whose links were lost or expired.

    Refused while any unused, unexpired token exists, so an application never
    has two live pairs at once.

    Raises:
        ApplicationNotFoundError: If the application doesn't exist
        InvalidApplicationStateError: If the application is not PENDING
        LiveTokensExistError: If live links already exist
        IncubationCentreNotFoundError, TokenIssuanceError: As for issue_approval_tokens
    """
    application = await repository.get_by_id(db, application_id)

    if not application:
        raise ApplicationNotFoundError(application_id)

    if application.status != ApplicationStatus.PENDING:
        raise InvalidApplicationStateError(
            "Review links can only be reissued for pending applications.",
            expected_state=ApplicationStatus.PENDING.value,
        )

    live = await repository.count_live_tokens(db, application_id, datetime.now(UTC))
    if live:
        raise LiveTokensExistError()

    return await issue_approval_tokens(db, application_id, notifier)
