from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from sqlalchemy import func, select
from api.v1 import auth, users, referrals, notifications
from core.config import settings
from db.base import initialize_database
from db.models.referral import Referral
from db.session import engine, SessionLocal
from services import events, listeners
from utils.logging_config import configure_logging, RequestContextMiddleware, REQUEST_ID_HEADER

logger = configure_logging("dyor_hub")

OPENAPI_TAGS = [
    {"name": "Authentication", "description": "Signup (optionally with a referral code) and login"},
    {"name": "Users", "description": "Current user profile and badges"},
    {"name": "Referrals", "description": "Referral codes, redemption, history and the public leaderboard"},
    {"name": "Notifications", "description": "In-app notifications such as successful referrals"},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    openapi_tags=OPENAPI_TAGS,
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error at {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Malformed bodies and params are client errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Validation failed at {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


app.add_middleware(GZipMiddleware, minimum_size=500)
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER],
)

app.include_router(auth.router, tags=["Authentication"])
app.include_router(users.router, tags=["Users"])
app.include_router(referrals.router, tags=["Referrals"])
app.include_router(notifications.router, tags=["Notifications"])


@app.on_event("startup")
async def startup_db_client():
    try:
        await initialize_database()
    except Exception as e:
        # The health endpoint reports the database as unavailable until it recovers
        logger.warning(f"Database initialization failed: {e}")
    logger.info(f"{events.REFERRAL_SUCCESSFUL} listeners: {listeners.describe_listeners(events.REFERRAL_SUCCESSFUL)}")
    logger.info(f"{settings.APP_NAME} {settings.VERSION} started")


@app.on_event("shutdown")
async def shutdown_db_client():
    await engine.dispose()
    logger.info("Application shutdown complete")


@app.get("/")
async def root():
    return {"message": settings.APP_NAME, "version": settings.VERSION}


@app.get("/health")
async def health_check():
    """Liveness plus a query against the referrals table."""
    try:
        async with SessionLocal() as db:
            await db.execute(select(func.count()).select_from(Referral))
        db_status = "sql_connected"
    except Exception as e:
        logger.warning(f"Health SQL check failed: {e}")
        db_status = "sql_unavailable"
    return {"status": "healthy" if db_status == "sql_connected" else "degraded", "database": db_status}
