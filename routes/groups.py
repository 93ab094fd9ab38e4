from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session, joinedload

from models.Group import Group
from models.GroupMember import GroupMember, GroupRole
from models.User import User
from schemas import GroupCreate, GroupInvite, GroupWithMembers, GroupMemberRead, UserSummary
from database import get_db
from services.auth_service import get_current_user_id
from services.exceptions import (
    AlreadyMember,
    Forbidden,
    GroupAlreadyExists,
    GroupNotFound,
    UserNotFound,
)
from services.match_lifecycle import add_group_member
from services.trip_service import get_owned_trip
from utils.logger import setup_api_logger

logger = setup_api_logger()
router = APIRouter(prefix="/groups", tags=["Groups"])


def group_to_read(group: Group) -> dict:
    members = [
        {
            "id": m.id,
            "group_id": m.group_id,
            "user_id": m.user_id,
            "role": m.role,
            "joined_at": m.joined_at,
            "user": UserSummary.model_validate(m.user).model_dump() if m.user else None,
        }
        for m in group.members
    ]
    return {
        "id": group.id,
        "name": group.name,
        "trip_id": group.trip_id,
        "created_by": group.created_by,
        "status": group.status,
        "created_at": group.created_at,
        "updated_at": group.updated_at,
        "member_count": len(members),
        "members": members,
    }


def get_group(db: Session, group_id: int) -> Group:
    group = (
        db.query(Group)
        .options(joinedload(Group.members).joinedload(GroupMember.user))
        .filter(Group.id == group_id)
        .first()
    )
    if not group:
        raise GroupNotFound()
    return group


def get_membership(db: Session, group_id: int, user_id: str):
    return db.query(GroupMember).filter_by(group_id=group_id, user_id=user_id).first()


def require_member(db: Session, group_id: int, user_id: str) -> GroupMember:
    membership = get_membership(db, group_id, user_id)
    if not membership:
        raise Forbidden("Access denied: You are not a member of this group")
    return membership


@router.post("/", response_model=GroupWithMembers, status_code=status.HTTP_201_CREATED)
def create_group(payload: GroupCreate, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    if payload.trip_id is not None:
        get_owned_trip(db, payload.trip_id, user_id)
        if db.query(Group).filter(Group.trip_id == payload.trip_id).first():
            raise GroupAlreadyExists()

    group = Group(name=payload.name, trip_id=payload.trip_id, created_by=user_id, status="active")
    db.add(group)
    db.flush()
    add_group_member(db, group.id, user_id, GroupRole.ADMIN.value)
    db.commit()

    logger.info("Group %s created by %s", group.id, user_id)
    return group_to_read(get_group(db, group.id))


@router.get("/", response_model=List[GroupWithMembers])
def list_my_groups(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    groups = (
        db.query(Group)
        .join(GroupMember, GroupMember.group_id == Group.id)
        .options(joinedload(Group.members).joinedload(GroupMember.user))
        .filter(GroupMember.user_id == user_id)
        .order_by(Group.id.asc())
        .all()
    )
    return [group_to_read(g) for g in groups]


@router.get("/{group_id}", response_model=GroupWithMembers)
def get_group_detail(group_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    group = get_group(db, group_id)
    require_member(db, group_id, user_id)
    return group_to_read(group)


@router.post("/{group_id}/join", response_model=GroupMemberRead, status_code=status.HTTP_201_CREATED)
def join_group(group_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    get_group(db, group_id)
    if get_membership(db, group_id, user_id):
        raise AlreadyMember()

    add_group_member(db, group_id, user_id, GroupRole.MEMBER.value)
    db.commit()
    return get_membership(db, group_id, user_id)


@router.post("/{group_id}/invite", response_model=GroupWithMembers)
def invite_to_group(
    group_id: int,
    payload: GroupInvite,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Admins add another registered user directly."""
    get_group(db, group_id)
    membership = require_member(db, group_id, user_id)
    if membership.role != GroupRole.ADMIN.value:
        raise Forbidden("Admin access required")

    if not db.query(User).filter(User.firebase_uid == payload.invitee_id).first():
        raise UserNotFound("User to invite not found")
    if get_membership(db, group_id, payload.invitee_id):
        raise AlreadyMember("User is already a member")

    add_group_member(db, group_id, payload.invitee_id, GroupRole.MEMBER.value)
    db.commit()
    return group_to_read(get_group(db, group_id))
