from typing import Optional, Protocol

from app.models.photo import GeoFix


class LocationProvider(Protocol):
    async def current_location(self) -> Optional[GeoFix]:
        ...


class StaticLocationProvider:
    """Returns a preset fix, or None when no fix is available."""

    def __init__(self, fix: Optional[GeoFix] = None):
        self.fix = fix

    async def current_location(self) -> Optional[GeoFix]:
        return self.fix
