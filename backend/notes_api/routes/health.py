"""
Notes API — Health Check Route
================================

What:  GET /v1/healthcheck for monitoring and load balancer probes.
How:   Returns a static availability payload with the environment label and
       application version. It performs no I/O and has no side effects.
"""

from fastapi import APIRouter, Request, Response

from notes_api import __version__
from notes_api.codec import write_json
from notes_api.schemas.note import HealthResponse, SystemInfo

router = APIRouter(prefix="/v1", tags=["Health"])


@router.get(
    "/healthcheck",
    response_model=HealthResponse,
    summary="Service availability",
)
async def healthcheck(request: Request) -> Response:
    payload = HealthResponse(
        status="available",
        system_info=SystemInfo(
            environment=request.app.state.settings.environment,
            version=__version__,
        ),
    )
    return write_json(200, payload.model_dump(mode="json"))
