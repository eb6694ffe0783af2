"""
Incubation centres module - Reviewer routing for applications.
"""

from app.modules.incubation_centres.models import IncubationCentre
from app.modules.incubation_centres.repository import IncubationCentreRepository

__all__ = ["IncubationCentre", "IncubationCentreRepository"]
