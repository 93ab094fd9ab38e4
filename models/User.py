from sqlalchemy import Column, String, DateTime, JSON, func
from database import Base

class User(Base):
    __tablename__ = "users"

    firebase_uid = Column(String(128), primary_key=True, unique=True, index=True)
    username = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    profile_image_url = Column(String(500), nullable=True)
    phone = Column(String(30), nullable=True)
    emergency_contact_name = Column(String(100), nullable=True)
    emergency_contact_phone = Column(String(30), nullable=True)
    # free-form preferences, e.g. {"smoking": false, "music": "quiet"}
    travel_preferences = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
