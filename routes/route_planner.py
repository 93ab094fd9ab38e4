"""
Route planning endpoint: geocode boarding points + destination and return
OSRM routes with cost estimates and turn-by-turn instructions.
"""
from fastapi import APIRouter, Depends

from schemas import RoutePlanRequest, RoutePlanResponse
from services.auth_service import get_current_user_id
from services.routing_service import RouteProvider, get_route_provider

router = APIRouter(prefix="/route", tags=["Route Planner"])


@router.post("/", response_model=RoutePlanResponse)
async def plan_route(
    req: RoutePlanRequest,
    user_id: str = Depends(get_current_user_id),
    provider: RouteProvider = Depends(get_route_provider),
):
    """
    Main route from the first boarding point, plus one route per additional
    boarding point. LocationNotFound / RouteUnavailable surface as 400.
    """
    routes = await provider.plan_routes(
        req.boarding_points,
        req.destination,
        req.transport_mode,
        req.optimization_mode,
    )
    return {
        "routes": [
            {
                "coordinates": r.polyline,
                "distance": r.distance_m,
                "duration": r.duration_s,
                "cost": r.cost,
                "mode": r.mode,
                "instructions": r.instructions,
            }
            for r in routes
        ]
    }
