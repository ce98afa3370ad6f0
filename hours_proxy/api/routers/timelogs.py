from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Request, Response
from fastapi.responses import JSONResponse

from hours_proxy.api.dependencies import get_bearer_token, get_upstream_client
from hours_proxy.errors import InvalidInput
from hours_proxy.upstream.client import UpstreamClient, UpstreamResponse


router = APIRouter(tags=["time-tracking"])

REQUIRED_TIME_LOG_PARAMS = ("DateFrom", "DateTo")


def relay(response: UpstreamResponse) -> Response:
    """Return the upstream status and body unchanged"""
    if response.body is None or response.status_code == 204:
        return Response(status_code=response.status_code)
    return JSONResponse(status_code=response.status_code, content=response.body)


@router.post("/login")
async def login(
    credentials: dict[str, Any] = Body(...),
    upstream: UpstreamClient = Depends(get_upstream_client),
) -> Response:
    """Exchange user credentials for an upstream token."""
    return relay(await upstream.login(credentials))


@router.get("/all-clients")
async def all_clients(
    token: str = Depends(get_bearer_token),
    upstream: UpstreamClient = Depends(get_upstream_client),
) -> Response:
    """Return all non-archived clients."""
    response = await upstream.get_clients(token)
    return JSONResponse(status_code=200, content=response.body)


@router.get("/time-logs")
async def time_logs(
    request: Request,
    token: str = Depends(get_bearer_token),
    upstream: UpstreamClient = Depends(get_upstream_client),
) -> Response:
    """Return the activity report between DateFrom and DateTo."""
    params = dict(request.query_params)
    missing = [name for name in REQUIRED_TIME_LOG_PARAMS if not params.get(name)]
    if missing:
        raise InvalidInput(f"Missing required query parameters: {', '.join(missing)}")

    response = await upstream.get_time_logs(token, params)
    return JSONResponse(status_code=200, content=response.body)


@router.put("/edit-log")
async def edit_log(
    token: str = Depends(get_bearer_token),
    payload: Optional[Any] = Body(default=None),
    upstream: UpstreamClient = Depends(get_upstream_client),
) -> Response:
    """Forward an edited time log."""
    if not isinstance(payload, dict) or not payload:
        raise InvalidInput("Request body must be a JSON object describing the log.")
    if payload.get("id") in (None, ""):
        raise InvalidInput("Request body is missing the log id.")
    if str(payload["id"]) in (".", ".."):
        raise InvalidInput("Log id is not valid.")

    return relay(await upstream.edit_log(token, payload))
