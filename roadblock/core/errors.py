"""
Domain exceptions for RoadBlock Alerts.

Services raise these; routes and the global handlers in main.py turn them
into HTTP responses using ``status_code``.
"""

from fastapi import status


class RoadblockError(Exception):
    """Base class for all domain errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(RoadblockError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Incident not found"


class UnauthenticatedError(RoadblockError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class InvalidInputError(RoadblockError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class InvalidActionError(InvalidInputError):
    default_message = "Action must be 'confirm' or 'dismiss'"


class DuplicateVoteError(InvalidInputError):
    default_message = "You have already verified this incident"


class StorageError(RoadblockError):
    default_message = "Storage backend failure"
