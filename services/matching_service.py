"""
Trip matching: pairwise scoring and the match set built when a trip is created.

Scoring rules (additive, independent):
    same destination (case-insensitive)                        50
    subject origin within threshold of candidate route         40
    subject destination within threshold of candidate route    40
    candidate origin within threshold of subject route         30
    same travel date                                           30
    same transport mode (case-insensitive)                     20

A pair only becomes a match when the total is strictly greater than the
threshold (50 by default).
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session, joinedload

from config import MATCH_SCORE_THRESHOLD, ROUTE_PROXIMITY_KM
from models.Trip import Trip, TripStatus
from models.TripMatch import TripMatch, MatchStatus
from services.exceptions import MatchingFailed
from utils.geo import is_near_route
from utils.logger import setup_api_logger

logger = setup_api_logger()

SAME_DESTINATION_POINTS = 50
PICKUP_ALONG_ROUTE_POINTS = 40
DROPOFF_ALONG_ROUTE_POINTS = 40
ROUTES_OVERLAP_POINTS = 30
SAME_DATE_POINTS = 30
SAME_TRANSPORT_MODE_POINTS = 20


@dataclass
class MatchScore:
    score: int = 0
    reasons: List[str] = field(default_factory=list)

    def add(self, points: int, reason: str):
        self.score += points
        self.reasons.append(reason)


def _normalize(text) -> str:
    return (getattr(text, "value", text) or "").strip().lower()


def _near(point, polyline, threshold_km: float) -> bool:
    if point is None or not polyline:
        return False
    return is_near_route(point, polyline, threshold_km)


def score_trip_pair(subject: Trip, candidate: Trip, threshold_km: float = ROUTE_PROXIMITY_KM) -> MatchScore:
    """Score `candidate` against `subject`.

    Not symmetric: the pickup/dropoff rules test the subject's endpoints
    against the candidate's route, the overlap rule tests the candidate's
    origin against the subject's route. Rules needing a polyline or a
    coordinate that is missing simply do not fire.
    """
    result = MatchScore()

    if _normalize(subject.destination) == _normalize(candidate.destination):
        result.add(SAME_DESTINATION_POINTS, "same_destination")

    if _near(subject.source_coords, candidate.route_geometry, threshold_km):
        result.add(PICKUP_ALONG_ROUTE_POINTS, "pickup_along_route")

    if _near(subject.destination_coords, candidate.route_geometry, threshold_km):
        result.add(DROPOFF_ALONG_ROUTE_POINTS, "dropoff_along_route")

    if _near(candidate.source_coords, subject.route_geometry, threshold_km):
        result.add(ROUTES_OVERLAP_POINTS, "routes_overlap")

    if subject.travel_date is not None and subject.travel_date == candidate.travel_date:
        result.add(SAME_DATE_POINTS, "same_date")

    if _normalize(subject.transport_mode) == _normalize(candidate.transport_mode):
        result.add(SAME_TRANSPORT_MODE_POINTS, "same_transport_mode")

    return result


def is_match(score: int, threshold: int = MATCH_SCORE_THRESHOLD) -> bool:
    return score > threshold


# --- Match set builder ---

def list_active_trips_excluding_user(db: Session, user_id: str) -> List[Trip]:
    return (
        db.query(Trip)
        .filter(Trip.status == TripStatus.ACTIVE.value, Trip.owner_id != user_id)
        .all()
    )


def build_match_records(
    trip: Trip,
    candidates: Iterable[Trip],
    created_at: Optional[datetime] = None,
) -> List[Dict]:
    """Two rows (trip -> candidate, candidate -> trip) per passing candidate."""
    created_at = created_at or datetime.now(timezone.utc)
    records = []
    for candidate in candidates:
        if candidate.id == trip.id or candidate.owner_id == trip.owner_id:
            continue
        result = score_trip_pair(trip, candidate)
        if not is_match(result.score):
            continue
        reasons = ",".join(result.reasons)
        for trip_id, matched_trip_id in ((trip.id, candidate.id), (candidate.id, trip.id)):
            records.append({
                "trip_id": trip_id,
                "matched_trip_id": matched_trip_id,
                "match_score": result.score,
                "match_reasons": reasons,
                "status": MatchStatus.PENDING,
                "created_at": created_at,
            })
    return records


def _insert_statement(db: Session):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        return None
    return insert(TripMatch)


def insert_matches(db: Session, records: List[Dict]) -> None:
    """Batch insert; existing (trip_id, matched_trip_id) pairs are left alone."""
    if not records:
        return

    stmt = _insert_statement(db)
    if stmt is not None:
        stmt = stmt.values(records).on_conflict_do_nothing(
            index_elements=["trip_id", "matched_trip_id"]
        )
        db.execute(stmt)
        return

    for record in records:
        exists = db.query(TripMatch.id).filter_by(
            trip_id=record["trip_id"], matched_trip_id=record["matched_trip_id"]
        ).first()
        if not exists:
            db.add(TripMatch(**record))
    db.flush()


def run_matching(db: Session, trip: Trip) -> List[Dict]:
    """Score `trip` against every active trip of other users and store the
    mirrored matches.

    Best effort: the trip must already be committed. Any failure is logged
    and rolled back, and an empty list is returned.
    """
    trip_id = trip.id
    try:
        candidates = list_active_trips_excluding_user(db, trip.owner_id)
        records = build_match_records(trip, candidates)
        insert_matches(db, records)
        db.commit()
    except Exception as exc:
        db.rollback()
        error = MatchingFailed(f"Matching failed for trip {trip_id}: {exc}")
        logger.exception(error.message)
        return []

    logger.info("Trip %s matched against %d candidates: %d match rows", trip_id, len(candidates), len(records))
    return records


def count_pending_matches(db: Session, trip_id: int) -> int:
    return (
        db.query(TripMatch)
        .filter(TripMatch.trip_id == trip_id, TripMatch.status == MatchStatus.PENDING)
        .count()
    )


def list_matches_for_trip(db: Session, trip_id: int, statuses: Optional[List[MatchStatus]] = None) -> List[TripMatch]:
    """Matches of one trip, best score first, with the matched trip and its owner loaded."""
    query = (
        db.query(TripMatch)
        .options(joinedload(TripMatch.matched_trip).joinedload(Trip.owner))
        .filter(TripMatch.trip_id == trip_id)
    )
    if statuses:
        query = query.filter(TripMatch.status.in_(statuses))
    return query.order_by(TripMatch.match_score.desc(), TripMatch.id.asc()).all()
