"""
Applications Repository

Database operations for applications and approval tokens.
Only data access lives here; business rules are in service.py.

Design Principles:
- All queries are parameterized
- Timezone-aware datetimes (UTC)
- Multi-row writes that must succeed together share one commit
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import asc, case, desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Application, ApplicationStatus, ApprovalAction, ApprovalToken
from .schemas import ApplicationCreate


async def create(db: AsyncSession, data: ApplicationCreate) -> Application:
    """Create a new application in PENDING status."""

    new_application = Application(
        # Founder details
        founder_name=data.founder_name,
        startup_name=data.startup_name,
        email=data.email,
        phone=data.phone,
        company_type=data.company_type.value,
        team_size=data.team_size.value,
        source=data.source.value,
        coupon_code=data.coupon_code,
        # Incubation info
        incubation_centre=data.incubation_centre,
        registration_certificate_url=data.registration_certificate_url,
        incubation_letter_url=data.incubation_letter_url,
        website=data.website,
        # Startup idea
        idea_description=data.idea_description,
        expectations=[item.value for item in data.expectations],
        challenges=data.challenges,
        status=ApplicationStatus.PENDING,
    )

    db.add(new_application)
    await db.commit()
    await db.refresh(new_application)

    return new_application


async def get_by_id(db: AsyncSession, id: UUID) -> Application | None:
    """Get application by ID."""
    return await db.get(Application, id)


# ============================================
# ApprovalToken Repository
# ============================================


async def create_token_pair(
    db: AsyncSession,
    application_id: UUID,
    approve_token: str,
    reject_token: str,
    expires_at: datetime,
) -> list[ApprovalToken]:
    """
    Store an approve and a reject token for one application.

    Both rows are written in a single commit; if it fails the session is
    rolled back and neither token exists.
    """
    tokens = [
        ApprovalToken(
            application_id=application_id,
            token=approve_token,
            action=ApprovalAction.APPROVE,
            expires_at=expires_at,
            used=False,
        ),
        ApprovalToken(
            application_id=application_id,
            token=reject_token,
            action=ApprovalAction.REJECT,
            expires_at=expires_at,
            used=False,
        ),
    ]

    db.add_all(tokens)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    return tokens


async def get_by_token(db: AsyncSession, token: str) -> ApprovalToken | None:
    """Get approval token by its stored (hashed) value."""

    result = await db.execute(select(ApprovalToken).where(ApprovalToken.token == token))
    return result.scalar_one_or_none()


async def get_tokens_for_application(
    db: AsyncSession, application_id: UUID
) -> list[ApprovalToken]:
    """Get every token ever issued for an application, oldest first."""

    result = await db.execute(
        select(ApprovalToken)
        .where(ApprovalToken.application_id == application_id)
        .order_by(ApprovalToken.created_at, ApprovalToken.action)
    )
    return list(result.scalars().all())


async def count_live_tokens(db: AsyncSession, application_id: UUID, now: datetime) -> int:
    """Count unused, unexpired tokens for an application."""

    result = await db.execute(
        select(func.count())
        .select_from(ApprovalToken)
        .where(
            ApprovalToken.application_id == application_id,
            ApprovalToken.used.is_(False),
            ApprovalToken.expires_at > now,
        )
    )
    return result.scalar() or 0


async def record_decision(
    db: AsyncSession,
    token_id: UUID,
    application: Application,
    status: ApplicationStatus,
    decided_at: datetime,
) -> bool:
    """
    Consume a token and apply its decision in one transaction.

    The token is claimed with a conditional UPDATE (used = false -> true),
    so of several concurrent redemptions of the same token exactly one
    matches a row. The application's status is written in the same
    transaction, so the token is never left marked used without the
    status change.

    Args:
        db: Database session
        token_id: ID of the token being redeemed
        application: Application the token refers to
        status: Target status (APPROVED or REJECTED)
        decided_at: Timestamp for used_at and approved_at / rejected_at

    Returns:
        True if this call consumed the token, False if it was already used

    Raises:
        Exception: Any database error; the transaction is rolled back
    """
    try:
        claim = await db.execute(
            update(ApprovalToken)
            .where(ApprovalToken.id == token_id, ApprovalToken.used.is_(False))
            .values(used=True, used_at=decided_at)
        )
        if claim.rowcount != 1:
            await db.rollback()
            return False

        application.status = status
        if status == ApplicationStatus.APPROVED:
            application.approved_at = decided_at
        else:
            application.rejected_at = decided_at

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(application)
    return True


# ============================================
# Admin Dashboard Queries
# ============================================


async def get_applications_for_admin(
    db: AsyncSession,
    *,
    status: ApplicationStatus | None = None,
    search: str | None = None,
    sort_order: str = "desc",
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Application], int]:
    """
    Get applications with filters and pagination for the admin dashboard.

    Args:
        db: Database session
        status: Filter by status (optional)
        search: Case-insensitive match on startup name, founder name or email
        sort_order: "desc" (newest first, default) or "asc"
        skip: Records to skip
        limit: Maximum records to return

    Returns:
        Tuple of (applications, total count matching filters)
    """
    query = select(Application)

    if status:
        query = query.where(Application.status == status)

    if search:
        search_pattern = f"%{search}%"
        query = query.where(
            or_(
                Application.startup_name.ilike(search_pattern),
                Application.founder_name.ilike(search_pattern),
                Application.email.ilike(search_pattern),
            )
        )

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    if sort_order.lower() == "asc":
        query = query.order_by(asc(Application.created_at))
    else:
        query = query.order_by(desc(Application.created_at))

    query = query.offset(skip).limit(limit)

    result = await db.execute(query)
    applications = list(result.scalars().all())

    return applications, total


async def get_dashboard_stats(db: AsyncSession) -> dict:
    """
    Count applications per status in a single query.

    Returns:
        Dict with keys all, pending, approved, rejected
    """
    query = select(
        func.count(Application.id).label("total"),
        func.count(case((Application.status == ApplicationStatus.PENDING, 1))).label("pending"),
        func.count(case((Application.status == ApplicationStatus.APPROVED, 1))).label(
            "approved"
        ),
        func.count(case((Application.status == ApplicationStatus.REJECTED, 1))).label(
            "rejected"
        ),
    )

    result = await db.execute(query)
    row = result.one()

    return {
        "all": row.total,
        "pending": row.pending,
        "approved": row.approved,
        "rejected": row.rejected,
    }
