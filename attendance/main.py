from fastapi import FastAPI, Request, APIRouter
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from attendance.api.v1.routes import rsvps as rsvps_router, waitlists as waitlists_router, health as health_router
from attendance.db.session import engine, Base
from attendance.core.config import settings
from attendance.core.errors import AttendanceError, ValidationError
from attendance.core.logging import logger
from attendance.core.rate_limit import limiter
from attendance.cache.redis_client import cache

app = FastAPI(title="Attendance")

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AttendanceError)
async def attendance_error_handler(request: Request, exc: AttendanceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.kind}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.kind}: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    messages = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return JSONResponse(status_code=400, content=ValidationError(messages or "Malformed request").to_dict())


api_router = APIRouter(prefix="/api/v1")
api_router.include_router(rsvps_router.router)
api_router.include_router(waitlists_router.router)
api_router.include_router(health_router.router)

app.include_router(api_router)


@app.on_event("startup")
async def on_startup():
    # Local runs without migrations get the schema created on boot
    if settings.ENVIRONMENT == "development":
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Attendance service started ({settings.ENVIRONMENT})")


@app.on_event("shutdown")
async def on_shutdown():
    cache.close()
    await engine.dispose()
