"""Dependency injection for FastAPI endpoints.

Usage in controllers:
    from comit.dependencies import Repository

    @router.get("/example/{event_id}")
    async def example(event_id: str, repository: Repository):
        windows = await repository.fetch_windows(event_id)
"""

from typing import Annotated

from fastapi import Depends

from comit import state
from comit.errors import ServiceUnavailableError
from comit.scheduling.repository import AvailabilityRepository


def get_repository() -> AvailabilityRepository:
    """Get the availability repository.

    Raises:
        ServiceUnavailableError: If the repository has not been initialized.
    """
    if state.repository is None:
        raise ServiceUnavailableError(detail="Availability storage not initialized")
    return state.repository


Repository = Annotated[AvailabilityRepository, Depends(get_repository)]
