from typing import List
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from models.TripMatch import TripMatch
from schemas import MatchAction, TripMatchRead, TripSummary, UserSummary, GroupWithMembers
from database import get_db
from routes.groups import group_to_read
from services.auth_service import get_current_user_id
from services.match_lifecycle import accept_match, decline_match
from services.matching_service import list_matches_for_trip
from services.trip_service import get_owned_trip

router = APIRouter(prefix="/trips/{trip_id}", tags=["Trip Matches"])


def match_to_read(match: TripMatch) -> dict:
    """TripMatch row -> TripMatchRead dict with the matched trip and its owner."""
    matched_trip = match.matched_trip
    return {
        "match_id": match.id,
        "match_score": match.match_score,
        "match_reasons": [r for r in (match.match_reasons or "").split(",") if r],
        "status": match.status,
        "created_at": match.created_at,
        "matched_trip": TripSummary.model_validate(matched_trip).model_dump(),
        "matched_user": (
            UserSummary.model_validate(matched_trip.owner).model_dump()
            if matched_trip.owner else None
        ),
    }


@router.get("/matches", response_model=List[TripMatchRead])
def list_trip_matches(trip_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    get_owned_trip(db, trip_id, user_id)
    return [match_to_read(m) for m in list_matches_for_trip(db, trip_id)]


@router.post("/accept-match", response_model=GroupWithMembers)
def accept_trip_match(
    trip_id: int,
    payload: MatchAction,
    response: Response,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Accept a match; returns the shared group (201 if it was just created)."""
    group, created = accept_match(db, payload.match_id, user_id, trip_id=trip_id)
    if created:
        response.status_code = status.HTTP_201_CREATED
    return group_to_read(group)


@router.post("/decline-match", response_model=TripMatchRead)
def decline_trip_match(
    trip_id: int,
    payload: MatchAction,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    match = decline_match(db, payload.match_id, user_id, trip_id=trip_id)
    return match_to_read(match)
