from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from classgrid.api.routes import conflicts, groups, health, schedules, settings as settings_routes, students
from classgrid.core.config import get_settings
from classgrid.core.exceptions import AppError
from classgrid.core.logging import configure_logging
from classgrid.core.middleware import RequestLoggingMiddleware, RequestSizeLimitMiddleware
from classgrid.db.bootstrap import ensure_schema

settings = get_settings()
configure_logging(settings.log_level)


@asynccontextmanager
async def lifespan(_: FastAPI):
    ensure_schema(create_missing=settings.auto_create_schema)
    yield


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(conflicts.router, prefix=f"{settings.api_prefix}/conflicts", tags=["conflicts"])
app.include_router(settings_routes.router, prefix=settings.api_prefix, tags=["settings"])
app.include_router(students.router, prefix=settings.api_prefix, tags=["students"])
app.include_router(groups.router, prefix=settings.api_prefix, tags=["groups"])
app.include_router(schedules.router, prefix=settings.api_prefix, tags=["schedules"])
