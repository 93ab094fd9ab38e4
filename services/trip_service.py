from sqlalchemy.orm import Session

from models.Trip import Trip
from services.exceptions import Forbidden, TripNotFound


def get_owned_trip(db: Session, trip_id: int, user_id: str) -> Trip:
    """Load a trip the caller owns; 404 if missing, 403 if someone else's."""
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    if not trip:
        raise TripNotFound()
    if trip.owner_id != user_id:
        raise Forbidden("Forbidden: You do not own this trip")
    return trip
