import os


def _to_float(val, default: float) -> float:
    try:
        return float(val) if val is not None else default
    except ValueError:
        return default


def _to_int(val, default: int) -> int:
    try:
        return int(val) if val is not None else default
    except ValueError:
        return default


BASE_DIR = os.path.abspath(os.path.dirname(__file__))

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./travel_companion.db")

# OpenStreetMap services (Nominatim geocoding, OSRM routing)
NOMINATIM_URL = os.getenv("NOMINATIM_URL", "https://nominatim.openstreetmap.org").rstrip("/")
OSRM_URL = os.getenv("OSRM_URL", "https://router.project-osrm.org").rstrip("/")
OSM_USER_AGENT = os.getenv("OSM_USER_AGENT", "TravelCompanionApp/1.0")
HTTP_TIMEOUT_SECONDS = _to_float(os.getenv("HTTP_TIMEOUT_SECONDS"), 10.0)
GEOCODE_CACHE_TTL_MINUTES = _to_int(os.getenv("GEOCODE_CACHE_TTL_MINUTES"), 60)

# Matching
ROUTE_PROXIMITY_KM = _to_float(os.getenv("ROUTE_PROXIMITY_KM"), 5.0)
MATCH_SCORE_THRESHOLD = _to_int(os.getenv("MATCH_SCORE_THRESHOLD"), 50)

# Firebase (ID token verification)
FIREBASE_CREDENTIALS_PATH = os.getenv(
    "FIREBASE_CREDENTIALS_PATH",
    os.path.join(BASE_DIR, "serviceAccountKey.json"),
)

# Logging
API_LOG_PATH = os.getenv("API_LOG_PATH", os.path.join(BASE_DIR, "logs", "api.log"))
