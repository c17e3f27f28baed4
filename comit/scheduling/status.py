from enum import Enum


class AvailabilityStatus(str, Enum):
    AVAILABLE = "available"
    IF_NEEDED = "if-needed"
    UNAVAILABLE = "unavailable"

    @property
    def rank(self) -> int:
        """Preference rank, lower is better. No-response ranks after all of these."""
        match self:
            case AvailabilityStatus.AVAILABLE:
                return 0
            case AvailabilityStatus.IF_NEEDED:
                return 1
            case AvailabilityStatus.UNAVAILABLE:
                return 2

    @classmethod
    def parse(cls, value: "str | AvailabilityStatus | None") -> "AvailabilityStatus":
        """Parse a stored status. Records saved before statuses existed carry none."""
        if value is None or value == "":
            return cls.AVAILABLE
        if isinstance(value, cls):
            return value
        return cls(value)


PREFERENCE_ORDER = (
    AvailabilityStatus.AVAILABLE,
    AvailabilityStatus.IF_NEEDED,
    AvailabilityStatus.UNAVAILABLE,
)
