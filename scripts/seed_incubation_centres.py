"""
Seed Incubation Centres

Creates incubation centres so the application form has choices and
review requests have somewhere to go. Existing centres are left alone.

Usage:
    python scripts/seed_incubation_centres.py "Centre Name=admin@example.com" ...
"""

import asyncio
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from app.core.database import async_session_maker, engine
from app.modules.incubation_centres.repository import IncubationCentreRepository


def parse_centre(arg: str) -> tuple[str, str]:
    """Split a NAME=EMAIL argument."""
    name, sep, email = arg.rpartition("=")
    if not sep or not name.strip() or "@" not in email:
        raise ValueError(f"Expected NAME=EMAIL, got: {arg!r}")
    return name.strip(), email.strip()


async def seed_incubation_centres(centres: list[tuple[str, str]]) -> None:
    """Create each centre that doesn't exist yet."""
    async with async_session_maker() as db:
        for name, admin_email in centres:
            existing = await IncubationCentreRepository.get_by_name(db, name)
            if existing:
                print(f"Centre already exists: {existing.name} ({existing.admin_email})")
                continue

            centre = await IncubationCentreRepository.create(db, name=name, admin_email=admin_email)
            print(f"Created centre: {centre.name}")
            print(f"  ID: {centre.id}")
            print(f"  Reviewer: {centre.admin_email}")

    await engine.dispose()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    try:
        parsed = [parse_centre(arg) for arg in sys.argv[1:]]
    except ValueError as e:
        print(e)
        sys.exit(1)

    asyncio.run(seed_incubation_centres(parsed))
