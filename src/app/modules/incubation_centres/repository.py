"""
Incubation Centre Repository

Database operations for incubation centres.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.incubation_centres.models import IncubationCentre

logger = logging.getLogger(__name__)


class IncubationCentreRepository:
    """Repository for incubation centre database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        name: str,
        admin_email: str,
    ) -> IncubationCentre:
        """
        Create a new incubation centre.

        Args:
            db: Database session
            name: Display name shown on the application form
            admin_email: Address that receives review requests

        Returns:
            Created IncubationCentre instance
        """
        centre = IncubationCentre(name=name, admin_email=admin_email)

        db.add(centre)
        await db.commit()
        await db.refresh(centre)

        logger.info(f"Created incubation centre: {centre.id} ({name})")
        return centre

    @staticmethod
    async def get_by_name(db: AsyncSession, name: str) -> IncubationCentre | None:
        """
        Get a centre by its display name.

        Matching ignores case and surrounding whitespace, since the name
        arrives as free text from the application form.
        """
        result = await db.execute(
            select(IncubationCentre).where(
                func.lower(IncubationCentre.name) == name.strip().lower()
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def list_all(db: AsyncSession) -> list[IncubationCentre]:
        """Get all centres ordered by name."""
        result = await db.execute(select(IncubationCentre).order_by(IncubationCentre.name))
        return list(result.scalars().all())
