"""
Match acceptance / decline and the group provisioning that follows an
accepted match.
"""
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.Group import Group
from models.GroupMember import GroupMember, GroupRole
from models.Trip import Trip
from models.TripMatch import TripMatch, MatchStatus
from services.exceptions import (
    Forbidden,
    MatchAlreadyResolved,
    MatchMismatch,
    MatchNotFound,
    TripNotFound,
)
from utils.logger import setup_api_logger

logger = setup_api_logger()


def group_name_for_trip(trip: Trip) -> str:
    return f"Trip to {trip.destination} - {trip.travel_date.isoformat()}"


def add_group_member(db: Session, group_id: int, user_id: str, role: str = GroupRole.MEMBER.value) -> bool:
    """Add a membership unless (group_id, user_id) already exists.

    Returns True when a row was inserted. A concurrent insert hitting the
    unique constraint counts as already present.
    """
    exists = db.query(GroupMember.id).filter_by(group_id=group_id, user_id=user_id).first()
    if exists:
        return False
    try:
        with db.begin_nested():
            db.add(GroupMember(group_id=group_id, user_id=user_id, role=role))
    except IntegrityError:
        logger.info("User %s already in group %s", user_id, group_id)
        return False
    return True


def create_group_with_members(db: Session, trip: Trip, participant_ids: List[str], name: Optional[str] = None) -> Group:
    """Create the group originating from `trip`; first participant is admin."""
    group = Group(
        name=name or group_name_for_trip(trip),
        trip_id=trip.id,
        created_by=participant_ids[0],
        status="active",
    )
    db.add(group)
    db.flush()
    for index, user_id in enumerate(participant_ids):
        role = GroupRole.ADMIN.value if index == 0 else GroupRole.MEMBER.value
        add_group_member(db, group.id, user_id, role)
    return group


def find_group_for_trips(db: Session, trip_ids: List[int]) -> Optional[Group]:
    return (
        db.query(Group)
        .filter(Group.trip_id.in_(trip_ids))
        .order_by(Group.id.asc())
        .first()
    )


def _resolve_owned_match(db: Session, match_id: int, user_id: str, trip_id: Optional[int]) -> Tuple[TripMatch, Trip]:
    match = db.query(TripMatch).filter(TripMatch.id == match_id).first()
    if not match:
        raise MatchNotFound()
    if trip_id is not None and match.trip_id != trip_id:
        raise MatchMismatch()

    subject = db.query(Trip).filter(Trip.id == match.trip_id).first()
    if not subject:
        raise TripNotFound()
    if subject.owner_id != user_id:
        raise Forbidden("You do not have permission to respond to matches for this trip")
    return match, subject


def _set_pair_status(db: Session, trip_id: int, matched_trip_id: int, status: MatchStatus):
    db.query(TripMatch).filter(
        ((TripMatch.trip_id == trip_id) & (TripMatch.matched_trip_id == matched_trip_id))
        | ((TripMatch.trip_id == matched_trip_id) & (TripMatch.matched_trip_id == trip_id))
    ).update({TripMatch.status: status}, synchronize_session="fetch")


def accept_match(db: Session, match_id: int, user_id: str, trip_id: Optional[int] = None) -> Tuple[Group, bool]:
    """Accept a match on behalf of the subject trip's owner.

    Both mirror rows become accepted. If either trip already originated a
    group the participants join it, otherwise a new group is created with
    the subject owner as admin. Returns (group, created).
    """
    match, subject = _resolve_owned_match(db, match_id, user_id, trip_id)
    if match.status == MatchStatus.DECLINED:
        raise MatchAlreadyResolved("Match was declined and cannot be accepted")

    try:
        _set_pair_status(db, subject.id, match.matched_trip_id, MatchStatus.ACCEPTED)

        candidate = db.query(Trip).filter(Trip.id == match.matched_trip_id).first()
        if not candidate:
            raise TripNotFound("Matched trip not found")

        group = find_group_for_trips(db, [subject.id, candidate.id])
        created = False
        if group:
            add_group_member(db, group.id, user_id, GroupRole.MEMBER.value)
            add_group_member(db, group.id, candidate.owner_id, GroupRole.MEMBER.value)
        else:
            try:
                with db.begin_nested():
                    group = create_group_with_members(db, subject, [subject.owner_id, candidate.owner_id])
                created = True
            except IntegrityError:
                # another request created the group for this trip first
                group = find_group_for_trips(db, [subject.id, candidate.id])
                if group is None:
                    raise
                add_group_member(db, group.id, user_id, GroupRole.MEMBER.value)
                add_group_member(db, group.id, candidate.owner_id, GroupRole.MEMBER.value)

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(group)
    logger.info(
        "Match %s accepted by %s (trips %s <-> %s), group %s %s",
        match_id, user_id, subject.id, candidate.id, group.id, "created" if created else "joined",
    )
    return group, created


def decline_match(db: Session, match_id: int, user_id: str, trip_id: Optional[int] = None) -> TripMatch:
    match, subject = _resolve_owned_match(db, match_id, user_id, trip_id)
    if match.status == MatchStatus.ACCEPTED:
        raise MatchAlreadyResolved("Match was already accepted")
    if match.status == MatchStatus.PENDING:
        _set_pair_status(db, subject.id, match.matched_trip_id, MatchStatus.DECLINED)
        db.commit()
        logger.info("Match %s declined by %s", match_id, user_id)
    db.refresh(match)
    return match
