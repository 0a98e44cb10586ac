"""
Purpose: Core data models for the riders domain.
What it does:
Defines the structure of a Rider as the console sees it, without relying on any HTTP or ORM types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class RiderStatus(str, Enum):
    """
    Standardizes the state a rider can be in.
    """
    ONLINE = "online"
    OFFLINE = "offline"
    BUSY = "busy"
    IDLE = "idle"


@dataclass(frozen=True)
class Location:
    lat: float
    lng: float


@dataclass(frozen=True)
class Capacity:
    current_load: int = 0
    max_load: int = 0

    @property
    def has_room(self) -> bool:
        return self.current_load < self.max_load


@dataclass(frozen=True)
class Rider:
    """
    A purely stateless representation of a Rider at a specific point in time.
    """
    id: str
    name: str
    status: RiderStatus
    avatar_initials: str = ""
    current_order_id: Optional[str] = None
    location: Optional[Location] = None
    capacity: Capacity = field(default_factory=Capacity)
    avg_eta_minutes: float = 0
    rating: float = 0

    @classmethod
    def new(
        cls,
        rider_id: str,
        name: str,
        status: str | RiderStatus = RiderStatus.OFFLINE,
        current_load: int = 0,
        max_load: int = 1,
        current_order_id: Optional[str] = None,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        rating: float = 0,
        avg_eta_minutes: float = 0,
    ) -> Rider:
        if isinstance(status, str):
            status = RiderStatus(status)

        # keep the capacity invariant even if the backend over-reports load
        max_load = max(max_load, 0)
        current_load = min(max(current_load, 0), max_load)

        location = Location(lat, lng) if lat is not None and lng is not None else None
        initials = "".join(part[0] for part in name.split()[:2]).upper()

        return cls(
            id=rider_id,
            name=name,
            status=status,
            avatar_initials=initials,
            current_order_id=current_order_id,
            location=location,
            capacity=Capacity(current_load=current_load, max_load=max_load),
            avg_eta_minutes=avg_eta_minutes,
            rating=min(max(rating, 0), 5),
        )
