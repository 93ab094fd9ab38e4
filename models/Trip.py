import enum

from sqlalchemy import Column, Integer, String, Date, Time, DateTime, ForeignKey, Float, JSON, func
from sqlalchemy.orm import relationship
from database import Base


class TransportMode(str, enum.Enum):
    CAR = "car"
    CYCLING = "cycling"
    WALKING = "walking"
    BUS = "bus"
    TRAIN = "train"
    FLIGHT = "flight"


class OptimizationMode(str, enum.Enum):
    SHORTEST = "shortest"
    CHEAPEST = "cheapest"
    FASTEST = "fastest"


class TripStatus(str, enum.Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Trip(Base):
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String, ForeignKey("users.firebase_uid", ondelete="CASCADE"), nullable=False, index=True)
    source = Column(String(250), nullable=False)
    destination = Column(String(250), nullable=False)
    source_lat = Column(Float, nullable=True)
    source_lng = Column(Float, nullable=True)
    destination_lat = Column(Float, nullable=True)
    destination_lng = Column(Float, nullable=True)
    travel_date = Column(Date, nullable=False, index=True)
    travel_time = Column(Time, nullable=False)
    transport_mode = Column(String(20), nullable=False)
    optimization_mode = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default=TripStatus.ACTIVE.value, index=True)
    # [[lat, lon], ...] as returned by the routing service; set once at creation
    route_geometry = Column(JSON, nullable=True)
    route_distance_m = Column(Float, nullable=True)
    route_duration_s = Column(Float, nullable=True)
    estimated_cost = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    owner = relationship("User", lazy="joined")
    matches = relationship(
        "TripMatch",
        foreign_keys="TripMatch.trip_id",
        back_populates="trip",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def source_coords(self):
        if self.source_lat is None or self.source_lng is None:
            return None
        return (self.source_lat, self.source_lng)

    @property
    def destination_coords(self):
        if self.destination_lat is None or self.destination_lng is None:
            return None
        return (self.destination_lat, self.destination_lng)
