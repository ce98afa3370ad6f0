"""Client for the upstream time-tracking REST API."""

import logging
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote

import httpx

from ..errors import TransportError, UpstreamError


logger = logging.getLogger(__name__)


@dataclass
class UpstreamResponse:
    status_code: int
    body: Any


def _decode(response: httpx.Response) -> Any:
    """Return the JSON body, or the raw text when it is not JSON"""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def filter_archived(clients: Any) -> Any:
    """Drop archived clients from a client-list payload"""
    if not isinstance(clients, list):
        return clients
    return [
        client
        for client in clients
        if not (isinstance(client, dict) and (client.get("isArchived") or client.get("archived")))
    ]


class UpstreamClient:
    """Forwards calls to the time-tracking API with the caller's bearer token."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @staticmethod
    def _headers(token: Optional[str] = None) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if token is not None:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
    ) -> UpstreamResponse:
        url = f"{self.base_url}{path}"
        logger.info(f"Forwarding {method} {path}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(
                    method, url, headers=self._headers(token), params=params, json=json
                )
        except httpx.HTTPError as e:
            logger.error(f"Error connecting to the API at {url}: {e}")
            raise TransportError("Error connecting to the API.") from e

        body = _decode(response)
        if not response.is_success:
            logger.warning(f"Upstream {method} {path} returned {response.status_code}")
            raise UpstreamError(response.status_code, body)
        return UpstreamResponse(status_code=response.status_code, body=body)

    async def login(self, credentials: dict[str, Any]) -> UpstreamResponse:
        return await self._request("POST", "/tokens/login", json=credentials)

    async def get_clients(self, token: str, include_archived: bool = False) -> UpstreamResponse:
        response = await self._request("GET", "/Clients", token=token)
        if not include_archived:
            response.body = filter_archived(response.body)
        return response

    async def get_time_logs(self, token: str, params: dict[str, Any]) -> UpstreamResponse:
        """Fetch the activity report; ``params`` must carry DateFrom and DateTo"""
        return await self._request("GET", "/Reports/Activity", token=token, params=params)

    async def edit_log(self, token: str, payload: dict[str, Any]) -> UpstreamResponse:
        """PUT the log to its own resource; the id is escaped into a single path segment"""
        log_id = quote(str(payload["id"]), safe="")
        return await self._request("PUT", f"/TimeLogs/{log_id}", token=token, json=payload)
