# schemas.py (Pydantic v2)
from pydantic import AfterValidator, BaseModel, EmailStr, Field
from typing import Annotated, Any, Dict, Optional, List, Tuple
from datetime import date, time, datetime

from models.Trip import TransportMode, OptimizationMode, TripStatus
from models.TripMatch import MatchStatus


def _strip_required(value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError("must not be empty")
    return value


# trimmed, non-empty text
NonEmptyStr = Annotated[str, AfterValidator(_strip_required)]


# ---------- Users ----------
class UserWrite(BaseModel):
    """Profile create-or-update. username and email are required only on first registration."""
    username: Optional[NonEmptyStr] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    profile_image_url: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=30)
    emergency_contact_name: Optional[str] = Field(None, max_length=100)
    emergency_contact_phone: Optional[str] = Field(None, max_length=30)
    travel_preferences: Optional[Dict[str, Any]] = None

    class Config:
        extra = "forbid"

class UserRead(BaseModel):
    firebase_uid: str
    username: str
    email: EmailStr
    profile_image_url: Optional[str] = None
    phone: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    travel_preferences: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class UserSummary(BaseModel):
    firebase_uid: str
    username: str
    email: str
    profile_image_url: Optional[str] = None

    class Config:
        from_attributes = True


# ---------- Trips ----------
class TripCreate(BaseModel):
    """Trip input. The owner always comes from the auth token, never the body."""
    source: NonEmptyStr = Field(..., max_length=250)
    destination: NonEmptyStr = Field(..., max_length=250)
    travel_date: date
    travel_time: time
    transport_mode: TransportMode
    optimization_mode: OptimizationMode

    class Config:
        extra = "forbid"

class TripUpdate(BaseModel):
    """Partial update. Changing places does not re-geocode or re-score."""
    source: Optional[NonEmptyStr] = Field(None, max_length=250)
    destination: Optional[NonEmptyStr] = Field(None, max_length=250)
    travel_date: Optional[date] = None
    travel_time: Optional[time] = None
    transport_mode: Optional[TransportMode] = None
    optimization_mode: Optional[OptimizationMode] = None
    status: Optional[TripStatus] = None

    class Config:
        extra = "forbid"

class TripRead(BaseModel):
    id: int
    owner_id: str
    source: str
    destination: str
    source_lat: Optional[float] = None
    source_lng: Optional[float] = None
    destination_lat: Optional[float] = None
    destination_lng: Optional[float] = None
    travel_date: date
    travel_time: time
    transport_mode: str
    optimization_mode: str
    status: str
    route_geometry: Optional[List[Tuple[float, float]]] = None
    route_distance_m: Optional[float] = None
    route_duration_s: Optional[float] = None
    estimated_cost: Optional[float] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class TripWithMatchCount(TripRead):
    match_count: int = 0

class TripSummary(BaseModel):
    id: int
    owner_id: str
    source: str
    destination: str
    travel_date: date
    travel_time: time
    transport_mode: str
    optimization_mode: str
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ---------- Trip Matches ----------
class MatchAction(BaseModel):
    match_id: int

    class Config:
        extra = "forbid"

class TripMatchRead(BaseModel):
    match_id: int
    match_score: int
    match_reasons: List[str] = []
    status: MatchStatus
    created_at: datetime
    matched_trip: TripSummary
    matched_user: Optional[UserSummary] = None


# ---------- Groups ----------
class GroupCreate(BaseModel):
    name: NonEmptyStr = Field(..., max_length=250)
    trip_id: Optional[int] = None

    class Config:
        extra = "forbid"

class GroupInvite(BaseModel):
    # the user being invited, not the caller
    invitee_id: str

    class Config:
        extra = "forbid"

class GroupMemberRead(BaseModel):
    id: int
    group_id: int
    user_id: str
    role: str
    joined_at: datetime
    user: Optional[UserSummary] = None

    class Config:
        from_attributes = True

class GroupRead(BaseModel):
    id: int
    name: str
    trip_id: Optional[int] = None
    created_by: str
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class GroupWithMembers(GroupRead):
    member_count: int = 0
    members: List[GroupMemberRead] = []


# ---------- Trip detail ----------
class TripDetail(TripRead):
    matches: List[TripMatchRead] = []
    groups: List[GroupRead] = []


# ---------- Messages ----------
class MessageWrite(BaseModel):
    body: NonEmptyStr = Field(..., max_length=4000)

    class Config:
        extra = "forbid"

class MessageRead(BaseModel):
    id: int
    group_id: int
    user_id: str
    body: str
    created_at: datetime
    sender: Optional[UserSummary] = None


# ---------- Route planner ----------
class RoutePlanRequest(BaseModel):
    boarding_points: List[NonEmptyStr] = Field(..., min_length=1)
    destination: NonEmptyStr
    transport_mode: TransportMode
    optimization_mode: OptimizationMode = OptimizationMode.SHORTEST

    class Config:
        extra = "forbid"

class RouteInstruction(BaseModel):
    distance: float
    duration: float
    instruction: str
    name: str
    type: Optional[str] = None

class PlannedRoute(BaseModel):
    coordinates: List[Tuple[float, float]]
    distance: float = Field(..., description="Distance in meters")
    duration: float = Field(..., description="Duration in seconds")
    cost: float
    mode: str
    instructions: List[RouteInstruction] = []

class RoutePlanResponse(BaseModel):
    routes: List[PlannedRoute]
