"""
Domain errors raised by the services layer.

Each error carries the HTTP status and machine-readable code that the
exception handler in main.py puts in the response.
"""


class TravelCompanionError(Exception):
    status_code = 400
    code = "ERROR"
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# --- Route acquisition ---

class LocationNotFound(TravelCompanionError):
    status_code = 400
    code = "GEOCODING_FAILED"
    default_message = (
        "Unable to geocode source or destination. Please provide more specific "
        "location names (e.g., \"New York, NY\" instead of just \"New York\")"
    )


class RouteUnavailable(TravelCompanionError):
    status_code = 400
    code = "ROUTE_UNAVAILABLE"
    default_message = "Unable to calculate route. Please try different locations or transport mode."


# --- Matching ---

class MatchingFailed(TravelCompanionError):
    status_code = 500
    code = "MATCHING_FAILED"
    default_message = "Matching algorithm failed"


class MatchNotFound(TravelCompanionError):
    status_code = 404
    code = "MATCH_NOT_FOUND"
    default_message = "Trip match not found"


class MatchMismatch(TravelCompanionError):
    status_code = 400
    code = "MATCH_MISMATCH"
    default_message = "Match does not belong to this trip"


class MatchAlreadyResolved(TravelCompanionError):
    status_code = 409
    code = "MATCH_ALREADY_RESOLVED"
    default_message = "Match has already been resolved"


# --- Ownership / lookups ---

class Forbidden(TravelCompanionError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "You do not have permission to perform this action"


class TripNotFound(TravelCompanionError):
    status_code = 404
    code = "TRIP_NOT_FOUND"
    default_message = "Trip not found"


class UserNotFound(TravelCompanionError):
    status_code = 404
    code = "USER_NOT_FOUND"
    default_message = "User not found"


class GroupNotFound(TravelCompanionError):
    status_code = 404
    code = "GROUP_NOT_FOUND"
    default_message = "Group not found"


class GroupAlreadyExists(TravelCompanionError):
    status_code = 409
    code = "GROUP_EXISTS"
    default_message = "A group already exists for this trip"


class AlreadyMember(TravelCompanionError):
    status_code = 400
    code = "ALREADY_MEMBER"
    default_message = "Already a member of this group"


class MessageNotFound(TravelCompanionError):
    status_code = 404
    code = "MESSAGE_NOT_FOUND"
    default_message = "Message not found"


class InvalidStatusTransition(TravelCompanionError):
    status_code = 400
    code = "INVALID_STATUS"
    default_message = "Invalid status change"
