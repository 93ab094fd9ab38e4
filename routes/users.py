from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from models.User import User
from schemas import UserWrite, UserRead
from database import get_db
from services.auth_service import get_current_user_id
from services.exceptions import UserNotFound
from utils.logger import setup_api_logger

logger = setup_api_logger()
router = APIRouter(prefix="/users", tags=["Users"])

# NOT NULL columns; an explicit null in an update leaves them unchanged
REQUIRED_FIELDS = ("username", "email")


@router.post("/me", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def upsert_me(
    payload: UserWrite,
    response: Response,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Create the authenticated user's profile (201) or update the fields sent (200)."""
    changes = payload.model_dump(exclude_unset=True)

    if changes.get("email"):
        taken = db.query(User).filter(User.email == changes["email"], User.firebase_uid != user_id).first()
        if taken:
            raise HTTPException(status_code=409, detail="Email already in use")

    user = db.query(User).filter(User.firebase_uid == user_id).first()
    if user:
        for k, v in changes.items():
            if v is None and k in REQUIRED_FIELDS:
                continue
            setattr(user, k, v)
        db.commit()
        db.refresh(user)
        response.status_code = status.HTTP_200_OK
        logger.info("Profile %s updated (%s)", user_id, ", ".join(sorted(changes)))
        return user

    if not payload.username or not payload.email:
        raise HTTPException(status_code=400, detail="username and email are required to register")

    new_user = User(firebase_uid=user_id, **changes)
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    logger.info("Profile %s registered", user_id)
    return new_user


@router.get("/me", response_model=UserRead)
def get_me(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    user = db.query(User).filter(User.firebase_uid == user_id).first()
    if not user:
        raise UserNotFound()
    return user
