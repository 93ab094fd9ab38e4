# Import every model so relationship strings resolve and create_all sees all tables.
from models.User import User
from models.Trip import Trip
from models.TripMatch import TripMatch
from models.Group import Group
from models.GroupMember import GroupMember
from models.Message import Message

__all__ = ["User", "Trip", "TripMatch", "Group", "GroupMember", "Message"]
