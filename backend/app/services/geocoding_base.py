"""
Places Backend: Abstract Geocoder Interface
=============================================

What:  Abstract base class for address → coordinates resolution.
How:   Concrete implementations inherit from Geocoder and implement resolve().
Who:   Called by PlaceService.create_place before any write is made.

Implementations (app/services/geocoding_service.py):
    - StaticGeocoder: constant coordinates, no network (default)
    - GoogleGeocoder: Google Geocoding API over httpx
"""

from abc import ABC, abstractmethod

from app.schemas.place import Coordinates


class Geocoder(ABC):
    """
    Contract:
        - resolve() returns a Coordinates pair or raises GeocodeError
        - Implementations handle their own retries and error translation
        - resolve() never touches the entity store
    """

    @abstractmethod
    async def resolve(self, address: str) -> Coordinates:
        """
        Resolve a postal address to latitude/longitude.

        Raises:
            GeocodeError: The address has no match or the provider failed.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """True if the provider is usable. Used by GET /health."""
        ...
