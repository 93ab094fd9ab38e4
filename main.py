from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

import models  # noqa: F401  registers every table on Base.metadata
from database import Base, engine
from routes import (
    users,
    trips,
    trip_matches,
    route_planner,
    groups,
    group_messages,
)
from services.exceptions import TravelCompanionError
from utils.logger import setup_api_logger

Base.metadata.create_all(bind=engine)

app = FastAPI(title="Travel Companion API (Trips, Matches, Groups, Messages, Routes)")

# file logger for API failures
api_logger = setup_api_logger()


async def _request_body(request: Request) -> str:
    try:
        body = await request.body()
    except Exception:
        body = b""
    return body.decode('utf-8', errors='replace')


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    body = await _request_body(request)
    api_logger.error("Unhandled exception on %s %s | body=%s | error=%s",
                     request.method, request.url.path, body, str(exc), exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    body = await _request_body(request)
    api_logger.warning("HTTPException on %s %s | status=%s | body=%s | detail=%s",
                       request.method, request.url.path, exc.status_code, body, str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)


@app.exception_handler(TravelCompanionError)
async def travel_companion_error_handler(request: Request, exc: TravelCompanionError):
    api_logger.warning("%s on %s %s | status=%s | detail=%s",
                       exc.code, request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})


app.include_router(users.router)
app.include_router(trips.router)
app.include_router(trip_matches.router)
app.include_router(route_planner.router)
app.include_router(groups.router)
app.include_router(group_messages.router)
