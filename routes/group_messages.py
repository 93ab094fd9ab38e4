from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session, joinedload

from models.Message import Message
from schemas import MessageWrite, MessageRead, UserSummary
from database import get_db
from routes.groups import get_group, require_member
from services.auth_service import get_current_user_id
from services.exceptions import Forbidden, MessageNotFound

router = APIRouter(prefix="/groups/{group_id}/messages", tags=["Group Messages"])


def message_to_read(msg: Message) -> dict:
    return {
        "id": msg.id,
        "group_id": msg.group_id,
        "user_id": msg.user_id,
        "body": msg.body,
        "created_at": msg.created_at,
        "sender": UserSummary.model_validate(msg.user).model_dump() if msg.user else None,
    }


# =====================================================
#                 POST MESSAGE
# =====================================================
@router.post("/", response_model=MessageRead, status_code=status.HTTP_201_CREATED)
def post_message(
    group_id: int,
    payload: MessageWrite,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    get_group(db, group_id)
    require_member(db, group_id, user_id)

    msg = Message(group_id=group_id, user_id=user_id, body=payload.body)
    db.add(msg)
    db.commit()
    db.refresh(msg)

    return message_to_read(msg)


# =====================================================
#                 GET MESSAGE LIST
# =====================================================
@router.get("/", response_model=List[MessageRead])
def list_messages(group_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    get_group(db, group_id)
    require_member(db, group_id, user_id)

    messages = (
        db.query(Message)
        .options(joinedload(Message.user))
        .filter(Message.group_id == group_id)
        .order_by(Message.created_at.asc(), Message.id.asc())
        .all()
    )
    return [message_to_read(m) for m in messages]


# =====================================================
#                 DELETE MESSAGE
# =====================================================
@router.delete("/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_message(
    group_id: int,
    message_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    msg = (
        db.query(Message)
        .filter(Message.id == message_id, Message.group_id == group_id)
        .first()
    )

    if not msg:
        raise MessageNotFound()
    if msg.user_id != user_id:
        raise Forbidden("Only the sender can delete this message")

    db.delete(msg)
    db.commit()
