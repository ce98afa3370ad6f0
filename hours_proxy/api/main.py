from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from hours_proxy import __version__
from hours_proxy.api.routers import sheets, timelogs
from hours_proxy.config import get_allowed_origins
from hours_proxy.errors import ProxyError


class HealthStatus(BaseModel):
    status: str
    version: str


app = FastAPI(title="Hours Proxy API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ProxyError)
async def proxy_error_handler(_request: Request, exc: ProxyError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.error})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {problems}"})


@app.get("/health")
async def health_check() -> HealthStatus:
    """Return health status of the API."""
    return HealthStatus(status="healthy", version=__version__)


app.include_router(timelogs.router)
app.include_router(sheets.router)
