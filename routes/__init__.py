from . import users
from . import trips
from . import trip_matches
from . import route_planner
from . import groups
from . import group_messages

__all__ = [
    "users",
    "trips",
    "trip_matches",
    "route_planner",
    "groups",
    "group_messages",
]
