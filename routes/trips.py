from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from models.Group import Group
from models.Trip import Trip, TripStatus
from models.TripMatch import MatchStatus
from models.User import User
from schemas import TripCreate, TripUpdate, TripRead, TripWithMatchCount, TripDetail, GroupRead
from database import get_db
from routes.trip_matches import match_to_read
from services.auth_service import get_current_user_id
from services.exceptions import InvalidStatusTransition, UserNotFound
from services.matching_service import run_matching, count_pending_matches, list_matches_for_trip
from services.routing_service import RouteProvider, get_route_provider
from services.trip_service import get_owned_trip
from utils.logger import setup_api_logger

logger = setup_api_logger()
router = APIRouter(prefix="/trips", tags=["Trips"])

# trips only leave the active state; cancelled and completed are final
ALLOWED_STATUS_CHANGES = {
    TripStatus.ACTIVE.value: {TripStatus.CANCELLED.value, TripStatus.COMPLETED.value},
}


def _with_match_count(db: Session, trip: Trip) -> dict:
    data = TripRead.model_validate(trip).model_dump()
    data["match_count"] = count_pending_matches(db, trip.id)
    return data


@router.post("/", response_model=TripWithMatchCount, status_code=status.HTTP_201_CREATED)
async def create_trip(
    payload: TripCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    provider: RouteProvider = Depends(get_route_provider),
):
    owner = db.query(User).filter(User.firebase_uid == user_id).first()
    if not owner:
        raise UserNotFound("Register your profile before creating trips")

    # LocationNotFound propagates as a 400; a missing route only degrades matching
    route = await provider.resolve_route(
        payload.source,
        payload.destination,
        payload.transport_mode,
        payload.optimization_mode,
        require_route=False,
    )

    trip = Trip(
        owner_id=user_id,
        source=payload.source,
        destination=payload.destination,
        source_lat=route.origin[0],
        source_lng=route.origin[1],
        destination_lat=route.destination[0],
        destination_lng=route.destination[1],
        travel_date=payload.travel_date,
        travel_time=payload.travel_time,
        transport_mode=payload.transport_mode.value,
        optimization_mode=payload.optimization_mode.value,
        status=TripStatus.ACTIVE.value,
        route_geometry=[list(p) for p in route.polyline] or None,
        route_distance_m=route.distance_m,
        route_duration_s=route.duration_s,
        estimated_cost=route.cost,
    )
    db.add(trip)
    db.commit()
    db.refresh(trip)
    logger.info("Trip %s created by %s (%s -> %s)", trip.id, user_id, trip.source, trip.destination)

    run_matching(db, trip)

    return _with_match_count(db, trip)


@router.get("/", response_model=List[TripWithMatchCount])
def list_my_trips(
    status_filter: Optional[TripStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    query = db.query(Trip).filter(Trip.owner_id == user_id)
    if status_filter:
        query = query.filter(Trip.status == status_filter.value)
    trips = query.order_by(Trip.created_at.desc(), Trip.id.desc()).all()
    return [_with_match_count(db, t) for t in trips]


@router.get("/{trip_id}", response_model=TripDetail)
def get_trip(trip_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    trip = get_owned_trip(db, trip_id, user_id)

    matches = list_matches_for_trip(db, trip.id, [MatchStatus.PENDING, MatchStatus.ACCEPTED])
    groups = db.query(Group).filter(Group.trip_id == trip.id).all()

    data = TripRead.model_validate(trip).model_dump()
    data["matches"] = [match_to_read(m) for m in matches]
    data["groups"] = [GroupRead.model_validate(g).model_dump() for g in groups]
    return data


@router.put("/{trip_id}", response_model=TripWithMatchCount)
def update_trip(
    trip_id: int,
    payload: TripUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Edit a trip. Route geometry and existing matches are left as they are."""
    t = get_owned_trip(db, trip_id, user_id)

    changes = {k: getattr(v, "value", v) for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}

    new_status = changes.get("status")
    if new_status and new_status != t.status and new_status not in ALLOWED_STATUS_CHANGES.get(t.status, set()):
        raise InvalidStatusTransition(f"Cannot change trip status from {t.status} to {new_status}")

    for k, v in changes.items():
        setattr(t, k, v)

    db.commit()
    db.refresh(t)
    return _with_match_count(db, t)


@router.delete("/{trip_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_trip(trip_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    t = get_owned_trip(db, trip_id, user_id)
    db.delete(t)
    db.commit()
    logger.info("Trip %s deleted by %s", trip_id, user_id)
