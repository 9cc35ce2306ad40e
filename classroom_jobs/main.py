import logging
import os
import sys

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .assignment_routes import router as assignment_router
from .db import _get_connection
from .exceptions import CUSTOM_ERRORS
from .state_routes import router as state_router

LOG_LEVEL = os.environ.get("CLASSROOM_JOBS_LOG_LEVEL", "INFO").upper()

logger = logging.getLogger("classroom_jobs")
logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

# Prevent duplicate handlers if imported multiple times
if not logger.handlers:
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(stream_handler)

app = FastAPI(title="Classroom Job Rotation API", version="0.1.0")

CORS_ALLOW_ORIGINS = os.environ.get("CORS_ALLOW_ORIGINS", "")
CORS_ALLOW_ORIGIN_REGEX = os.environ.get(
    "CORS_ALLOW_ORIGIN_REGEX", r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"
)
_allowed_origins = [origin.strip() for origin in CORS_ALLOW_ORIGINS.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_origin_regex=None if _allowed_origins else CORS_ALLOW_ORIGIN_REGEX,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _status_for(exc: Exception) -> int:
    for error_type in type(exc).__mro__:
        if error_type in CUSTOM_ERRORS:
            return CUSTOM_ERRORS[error_type]
    return 500


async def _custom_error_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


for _error_type in CUSTOM_ERRORS:
    app.add_exception_handler(_error_type, _custom_error_handler)


@app.on_event("startup")
def _startup() -> None:
    conn = _get_connection()
    conn.close()


app.include_router(state_router)
app.include_router(assignment_router)
