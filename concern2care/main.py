# concern2care/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from concern2care.core.config import settings
from concern2care.core.errors import Concern2CareError, LimitExceededError
from concern2care.db.base import Base
from concern2care.db.session import engine
from concern2care.api.v1.endpoints import (
    admin_submissions,
    classroom,
    health,
    notifications,
    teachers,
)
from concern2care import models  # noqa

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Concern2CareError)
async def domain_error_handler(request: Request, exc: Concern2CareError):
    content = {"detail": exc.message}
    if isinstance(exc, LimitExceededError):
        content["used"] = exc.used
        content["limit"] = exc.limit
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=content)


@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)


API_PREFIX = "/api/v1"

app.include_router(health.router, prefix=API_PREFIX)
app.include_router(classroom.router, prefix=API_PREFIX)
app.include_router(teachers.router, prefix=API_PREFIX)
app.include_router(admin_submissions.router, prefix=API_PREFIX)
app.include_router(notifications.router, prefix=API_PREFIX)
