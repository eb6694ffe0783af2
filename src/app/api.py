from fastapi import APIRouter

from app.modules.applications import router as applications_router
from app.modules.applications.admin_router import router as admin_applications_router
from app.modules.incubation_centres.router import admin_router as admin_centres_router
from app.modules.incubation_centres.router import router as centres_router

api_router = APIRouter()

api_router.include_router(applications_router, prefix="/applications", tags=["Applications"])

api_router.include_router(
    centres_router, prefix="/incubation-centres", tags=["Incubation Centres"]
)

api_router.include_router(
    admin_applications_router,
    prefix="/admin/applications",
    tags=["Admin - Applications"],
)

api_router.include_router(
    admin_centres_router,
    prefix="/admin/incubation-centres",
    tags=["Admin - Incubation Centres"],
)
