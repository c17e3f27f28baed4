from typing import Optional

from comit.scheduling.repository import AvailabilityRepository

# Global runtime state initialized in main.lifespan
repository: Optional[AvailabilityRepository] = None
