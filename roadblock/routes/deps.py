"""
FastAPI dependency providers wiring services to the active repository.
"""

from fastapi import Depends

from roadblock.services.incident_service import IncidentService
from roadblock.services.settings_service import SettingsService
from roadblock.services.storage import IncidentRepository, get_repository
from roadblock.services.verification_service import VerificationService


def get_incident_service(repository: IncidentRepository = Depends(get_repository)) -> IncidentService:
    return IncidentService(repository)


def get_verification_service(repository: IncidentRepository = Depends(get_repository)) -> VerificationService:
    return VerificationService(repository)


def get_settings_service(repository: IncidentRepository = Depends(get_repository)) -> SettingsService:
    return SettingsService(repository)
