"""
Incubation Centres Router

Endpoints:
- GET /incubation-centres - Public list of centres for the application form
- POST /admin/incubation-centres - Admin creates a centre (name + reviewer email)
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AdminUser, get_current_admin_user
from app.core.database import get_db
from app.modules.incubation_centres.repository import IncubationCentreRepository
from app.modules.incubation_centres.schemas import (
    IncubationCentreCreate,
    IncubationCentreListResponse,
    IncubationCentreOption,
    IncubationCentreResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter()


@router.get(
    "",
    response_model=IncubationCentreListResponse,
    summary="List Incubation Centres",
    description="List the incubation centres an applicant can choose from, ordered by name.",
)
async def list_centres(
    db: AsyncSession = Depends(get_db),
) -> IncubationCentreListResponse:
    """List all incubation centres."""
    centres = await IncubationCentreRepository.list_all(db)
    return IncubationCentreListResponse(
        centres=[IncubationCentreOption.model_validate(centre) for centre in centres]
    )


@admin_router.post(
    "",
    response_model=IncubationCentreResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Incubation Centre",
    description="""
Register a new incubation centre.

The `admin_email` receives the review request (with approve/reject links)
for every application submitted to this centre.

**Access:** Admin only
""",
    responses={
        201: {"description": "Centre created", "model": IncubationCentreResponse},
        401: {"description": "Unauthorized - invalid or missing token"},
        403: {"description": "Forbidden - not an admin"},
        409: {"description": "A centre with this name already exists"},
    },
)
async def create_centre(
    data: IncubationCentreCreate,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin_user),
) -> IncubationCentreResponse:
    """Create an incubation centre."""
    existing = await IncubationCentreRepository.get_by_name(db, data.name)
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": "DUPLICATE_INCUBATION_CENTRE",
                "message": f"An incubation centre named '{data.name}' already exists.",
            },
        )

    centre = await IncubationCentreRepository.create(
        db,
        name=data.name.strip(),
        admin_email=data.admin_email,
    )

    logger.info(f"Admin {admin.id} created incubation centre {centre.id}")
    return IncubationCentreResponse.model_validate(centre)
