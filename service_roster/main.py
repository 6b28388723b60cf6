import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import endpoints
from .core.config import CORS_ORIGINS, LOG_LEVEL
from .core.exceptions import (
    HolidayNotFound,
    InvalidDate,
    InvalidPolicy,
    NoLegalServiceDay,
    NotAServiceDay,
    PresetNotFound,
    RepositoryError,
    RosterError,
    ScheduleNotFound,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Service Roster",
    description="Service-day recurrence, holiday catalog and role assignments for church rosters.",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


ERROR_STATUS = {
    InvalidDate: 400,
    NotAServiceDay: 409,
    NoLegalServiceDay: 422,
    InvalidPolicy: 422,
    ScheduleNotFound: 404,
    HolidayNotFound: 404,
    PresetNotFound: 404,
    RepositoryError: 503,
}


@app.exception_handler(RosterError)
async def roster_error_handler(request: Request, exc: RosterError):
    status_code = next((code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 500)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} - {exc}")
    else:
        logger.warning(f"{request.method} {request.url.path} - {exc}")
    return JSONResponse(status_code=status_code, content={"detail": exc.to_dict()})


# Include the API router
app.include_router(endpoints.router, prefix="/api")


@app.get("/", tags=["Root"])
async def read_root():
    """A simple health check endpoint."""
    return {"status": "ok"}
