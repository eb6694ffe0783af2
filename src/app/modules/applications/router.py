"""
Applications Router

Public endpoints of the application workflow. No authentication:
applicants have no accounts, and the approval link's token is the
reviewer's only credential.

Endpoints:
- POST /applications - Submit a new application
- GET /applications/{id}/status - Applicant status lookup (email must match)
- GET /handle-approval?token=... - Redeem an approve/reject link (HTML page)

Security:
- Rate limiting on submission and redemption (Redis, memory fallback)
- Input validation via Pydantic schemas
- Tokens are single-use, expire after 7 days and are never logged
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.email import NotificationDispatcher, get_notifier
from app.core.rate_limit import RateLimiter, RateLimitExceeded
from app.modules.applications import service
from app.modules.applications.pages import render_decision_page, render_error_page
from app.modules.applications.schemas import (
    ApplicationCreate,
    ApplicationStatusResponse,
    ApplicationSubmitResponse,
)
from app.modules.applications.service import (
    ApplicationNotFoundError,
    ApplicationServiceError,
    IncubationCentreNotFoundError,
    InvalidEmailError,
)

logger = logging.getLogger(__name__)

router = APIRouter()
approval_router = APIRouter()

submission_limiter = RateLimiter(
    "submission",
    limit=settings.submission_rate_limit,
    window_seconds=settings.submission_rate_window_seconds,
)
redemption_limiter = RateLimiter(
    "redemption",
    limit=settings.redemption_rate_limit,
    window_seconds=settings.redemption_rate_window_seconds,
)


@router.post(
    "",
    response_model=ApplicationSubmitResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(submission_limiter)],
    summary="Submit Incubation Application",
    description="""
Submit a new incubation application.

After submission:
1. A confirmation email is sent to the applicant
2. The chosen incubation centre's admin receives a review request with
   an APPROVE and a REJECT link (single use, valid for 7 days)
3. The applicant is emailed the decision once a link is used

**Response:**
Returns the application ID and its `pending` status.
""",
    responses={
        201: {
            "description": "Application created successfully",
            "model": ApplicationSubmitResponse,
        },
        400: {
            "description": "Unknown incubation centre",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "INCUBATION_CENTRE_NOT_FOUND",
                            "message": "Incubation centre 'Example Hub' is not registered.",
                        }
                    }
                }
            },
        },
        422: {"description": "Validation error - missing or malformed fields"},
        429: {"description": "Too many submissions from this client"},
    },
)
async def submit_application(
    data: ApplicationCreate,
    db: AsyncSession = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> ApplicationSubmitResponse:
    """
    Submit a new incubation application.

    Raises:
        HTTPException 400: If the incubation centre is not registered
        HTTPException 500: If the review links could not be issued
    """
    try:
        response = await service.submit_application(db, data, notifier)

        logger.info(
            f"Application submitted successfully: id={response.id}, startup={data.startup_name}"
        )

        return response

    except IncubationCentreNotFoundError as e:
        logger.warning(f"Submission rejected: {e.message}")
        raise HTTPException(
            status_code=e.status_code,
            detail={
                "error": e.error_code,
                "message": e.message,
            },
        ) from e
    except ApplicationServiceError as e:
        logger.error(f"Application service error: {e.message}")
        raise HTTPException(
            status_code=e.status_code,
            detail={
                "error": e.error_code,
                "message": e.message,
            },
        ) from e
    except Exception as e:
        logger.exception(f"Unexpected error submitting application: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred. Please try again later.",
            },
        ) from e


@router.get(
    "/{application_id}/status",
    response_model=ApplicationStatusResponse,
    summary="Get Application Status",
    description="""
Get the current status of an application.

The `email` query parameter must match the email used on the application.
""",
    responses={
        403: {"description": "Email does not match the application"},
        404: {"description": "Application not found"},
    },
)
async def get_application_status(
    application_id: UUID,
    email: str = Query(..., min_length=3, max_length=255, description="Applicant email"),
    db: AsyncSession = Depends(get_db),
) -> ApplicationStatusResponse:
    """Get applicant-facing status."""
    try:
        return await service.get_application_status(db, application_id, email)

    except (ApplicationNotFoundError, InvalidEmailError) as e:
        raise HTTPException(
            status_code=e.status_code,
            detail={
                "error": e.error_code,
                "message": e.message,
            },
        ) from e
    except Exception as e:
        logger.exception(f"Unexpected error getting application status: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred. Please try again later.",
            },
        ) from e


@approval_router.get(
    "/handle-approval",
    response_class=HTMLResponse,
    summary="Redeem Approval Link",
    description="""
Approve or reject an application from the link in the review request email.

Each link works once and expires 7 days after it was issued. The response
is an HTML page for the reviewer's browser.

| Outcome | Status |
|---|---|
| Decision recorded | 200 |
| Missing or unknown token | 400 |
| Application no longer exists | 404 |
| Link already used | 409 |
| Link expired | 410 |
| Too many attempts | 429 |
""",
    tags=["Approvals"],
)
async def handle_approval(
    request: Request,
    token: str | None = Query(None, max_length=255, description="Approval token"),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> HTMLResponse:
    """Redeem an approval token and render the outcome."""
    try:
        await redemption_limiter(request)
    except RateLimitExceeded as e:
        return HTMLResponse(
            render_error_page(
                "RATE_LIMIT_EXCEEDED", "Too many attempts. Please wait a minute and try again."
            ),
            status_code=e.status_code,
            headers=e.headers,
        )

    try:
        result = await service.redeem_token(db, token, notifier)

        return HTMLResponse(
            render_decision_page(
                result.status,
                result.application.startup_name,
                result.application.email,
            ),
            status_code=status.HTTP_200_OK,
        )

    except ApplicationServiceError as e:
        if e.status_code >= 500:
            logger.error(f"Approval link failed: {e.message}")
        else:
            logger.info(f"Approval link refused: {e.error_code}")
        return HTMLResponse(
            render_error_page(e.error_code, e.message),
            status_code=e.status_code,
        )
    except Exception as e:
        logger.exception(f"Unexpected error handling approval link: {e}")
        return HTMLResponse(
            render_error_page(
                "INTERNAL_ERROR", "An unexpected error occurred. Please try again later."
            ),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
