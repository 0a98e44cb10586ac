from .models import Capacity, Location, Rider, RiderStatus

__all__ = ["Capacity", "Location", "Rider", "RiderStatus"]
