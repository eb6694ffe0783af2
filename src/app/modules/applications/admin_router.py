"""
Applications Admin Router

Read-only dashboard endpoints for incubation admins, plus reissuing of
review links. Decisions themselves are only made through the emailed
approve/reject links.

Endpoints:
- GET /admin/applications - List applications with filters and pagination
- GET /admin/applications/stats - Counts per status
- GET /admin/applications/{id} - Application details with token audit
- POST /admin/applications/{id}/resend-review-request - Reissue review links

Security:
- All endpoints require a valid JWT with the admin role
- Token values are never returned, only their audit fields
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AdminUser, get_current_admin_user
from app.core.database import get_db
from app.core.email import NotificationDispatcher, get_notifier
from app.core.rate_limit import RateLimitExceeded, check_rate_limit
from app.modules.applications import service
from app.modules.applications.models import ApplicationStatus
from app.modules.applications.schemas import (
    ApplicationDetailResponse,
    ApplicationListItem,
    ApplicationListResponse,
    ApprovalTokenAudit,
    DashboardStats,
    ResendReviewRequestResponse,
)
from app.modules.applications.service import (
    ApplicationNotFoundError,
    ApplicationServiceError,
)

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_RESEND_REVIEW = (10, 60)  # 10 reissues per minute per admin


def _handle_service_error(e: ApplicationServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
    )


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )


def _application_to_detail(app, tokens) -> ApplicationDetailResponse:
    """Convert an Application and its tokens to ApplicationDetailResponse."""
    return ApplicationDetailResponse(
        id=app.id,
        founder_name=app.founder_name,
        startup_name=app.startup_name,
        email=app.email,
        phone=app.phone,
        company_type=app.company_type,
        team_size=app.team_size,
        source=app.source,
        coupon_code=app.coupon_code,
        incubation_centre=app.incubation_centre,
        registration_certificate_url=app.registration_certificate_url,
        incubation_letter_url=app.incubation_letter_url,
        website=app.website,
        idea_description=app.idea_description,
        expectations=list(app.expectations or []),
        challenges=app.challenges,
        status=app.status,
        approved_at=app.approved_at,
        rejected_at=app.rejected_at,
        created_at=app.created_at,
        updated_at=app.updated_at,
        tokens=[ApprovalTokenAudit.model_validate(token) for token in tokens],
    )


@router.get(
    "",
    response_model=ApplicationListResponse,
    summary="List Applications",
    description="""
Get a paginated list of applications, newest first.

**Filters:**
- `status`: pending, approved or rejected (omit for all)
- `search`: Search in startup name, founder name and email

**Pagination:**
- `skip`: Number of records to skip. Default: 0
- `limit`: Maximum records to return (1-100). Default: 20

**Access:** Admin only
""",
    responses={
        401: {"description": "Unauthorized - invalid or missing token"},
        403: {"description": "Forbidden - not an admin"},
    },
)
async def list_applications(
    status_filter: ApplicationStatus | None = Query(
        None,
        alias="status",
        description="Filter by application status",
    ),
    search: str | None = Query(
        None,
        min_length=1,
        max_length=100,
        description="Search term for startup/founder/email",
    ),
    sort_order: str = Query(
        "desc",
        pattern="^(asc|desc)$",
        description="Sort direction by submission time",
    ),
    skip: int = Query(0, ge=0, description="Records to skip"),
    limit: int = Query(20, ge=1, le=100, description="Maximum records to return"),
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> ApplicationListResponse:
    """List applications with filters and pagination."""
    try:
        result = await service.admin_get_applications_list(
            db,
            status=status_filter,
            search=search,
            sort_order=sort_order,
            skip=skip,
            limit=limit,
        )

        logger.info(
            f"Admin {admin.id} listed applications: "
            f"total={result['total']}, returned={len(result['applications'])}"
        )

        return ApplicationListResponse(
            applications=[
                ApplicationListItem.model_validate(app) for app in result["applications"]
            ],
            total=result["total"],
            skip=result["skip"],
            limit=result["limit"],
        )

    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error listing applications: {e}")
        raise _internal_error() from e


@router.get(
    "/stats",
    response_model=DashboardStats,
    summary="Get Dashboard Statistics",
    description="""
Counts of applications per status (`all`, `pending`, `approved`, `rejected`),
used for the dashboard tabs.

**Access:** Admin only
""",
)
async def get_stats(
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> DashboardStats:
    """Get status counts for the admin dashboard."""
    try:
        stats = await service.admin_get_dashboard_stats(db)

        logger.info(f"Admin {admin.id} fetched dashboard stats")

        return DashboardStats(**stats)

    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error getting dashboard stats: {e}")
        raise _internal_error() from e


@router.get(
    "/{application_id}",
    response_model=ApplicationDetailResponse,
    summary="Get Application Details",
    description="""
Complete application record, including the audit trail of issued
approval tokens (action, expiry, used, used_at).

**Access:** Admin only
""",
    responses={
        404: {"description": "Application not found"},
    },
)
async def get_application_detail(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> ApplicationDetailResponse:
    """Get complete details of an application."""
    try:
        application, tokens = await service.admin_get_application_detail(db, application_id)

        logger.info(f"Admin {admin.id} viewed application {application_id}")

        return _application_to_detail(application, tokens)

    except ApplicationNotFoundError as e:
        logger.warning(f"Application not found: {application_id}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": e.error_code,
                "message": e.message,
            },
        ) from e
    except ApplicationServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error getting application detail: {e}")
        raise _internal_error() from e


@router.post(
    "/{application_id}/resend-review-request",
    response_model=ResendReviewRequestResponse,
    summary="Resend Review Request",
    description="""
Issue a new pair of approve/reject links for a pending application and
email them to the incubation centre admin.

Refused while the application still has unused, unexpired links.

**Access:** Admin only
""",
    responses={
        404: {"description": "Application or incubation centre not found"},
        409: {"description": "Application not pending, or live links still exist"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def resend_review_request(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
    admin: AdminUser = Depends(get_current_admin_user),
) -> ResendReviewRequestResponse:
    """Reissue review links for a pending application."""
    limit, window_seconds = RATE_LIMIT_RESEND_REVIEW
    if not await check_rate_limit(f"admin:resend_review:{admin.id}", limit, window_seconds):
        logger.warning(f"Rate limit exceeded for admin {admin.id} on resend-review-request")
        raise RateLimitExceeded(limit, window_seconds)

    try:
        issued = await service.admin_resend_review_request(db, application_id, notifier)

        logger.info(f"Admin {admin.id} reissued review links for application {application_id}")

        return ResendReviewRequestResponse(id=issued.application_id, expires_at=issued.expires_at)

    except ApplicationServiceError as e:
        logger.warning(f"Resend review request refused for {application_id}: {e.error_code}")
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error resending review request: {e}")
        raise _internal_error() from e
