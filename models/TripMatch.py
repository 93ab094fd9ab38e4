import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum as SQLEnum, UniqueConstraint, func
from sqlalchemy.orm import relationship
from database import Base


class MatchStatus(enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class TripMatch(Base):
    """Directional match record; every pair is stored twice, once per trip."""
    __tablename__ = "trip_matches"
    __table_args__ = (
        UniqueConstraint("trip_id", "matched_trip_id", name="uq_trip_match"),
    )

    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    matched_trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    match_score = Column(Integer, nullable=False)
    match_reasons = Column(String(250), nullable=True)  # comma separated rule tags
    status = Column(SQLEnum(MatchStatus), default=MatchStatus.PENDING, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    trip = relationship("Trip", foreign_keys=[trip_id], back_populates="matches")
    matched_trip = relationship("Trip", foreign_keys=[matched_trip_id])
