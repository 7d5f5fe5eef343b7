# parkpay/main.py
"""
FastAPI application entry point.
Includes security middleware, cache headers, global error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from parkpay.routers import customer, tickets, cars, payments, company_settings, stats, staff, health
from parkpay.database import create_tables, SessionLocal
from parkpay.config import settings
from parkpay.exceptions import ParkingError
from parkpay.services.stats_stream import register_change_listeners
from parkpay.utils.logger import get_logger
import time

logger = get_logger(__name__)

API_PREFIX = "/api/v1"

app = FastAPI(
    title="ParkPay API",
    description="Parking lot tickets, payments and exits.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (the staff dashboard and the customer page are served separately) ──
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key auth for staff endpoints.
    Customer endpoints stay open: customers only hold a ticket code.
    Set API_KEY in .env. Leave empty to disable auth.
    """
    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        is_admin = path.startswith(f"{API_PREFIX}/admin")
        if not is_admin or not settings.API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware)


# ── Request Timing + No-Cache Middleware ─────────────────────────────────────
NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
    "Surrogate-Control": "no-store",
}


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    is_stream = response.headers.get("content-type", "").startswith("text/event-stream")
    if request.url.path.startswith(API_PREFIX) and not is_stream:
        response.headers.update(NO_CACHE_HEADERS)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Exception Handlers ───────────────────────────────────────────────────────
@app.exception_handler(ParkingError)
async def parking_error_handler(request: Request, exc: ParkingError):
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {getattr(exc, 'reason', exc.message)}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid or missing fields", "errors": errors},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(customer.router,         prefix=API_PREFIX, tags=["Customer"])
app.include_router(tickets.router,          prefix=API_PREFIX, tags=["Tickets"])
app.include_router(cars.router,             prefix=API_PREFIX, tags=["Cars"])
app.include_router(payments.router,         prefix=API_PREFIX, tags=["Payments"])
app.include_router(company_settings.router, prefix=API_PREFIX, tags=["Settings"])
app.include_router(stats.router,            prefix=API_PREFIX, tags=["Stats"])
app.include_router(staff.router,            prefix=API_PREFIX, tags=["Staff"])
app.include_router(health.router,           prefix=API_PREFIX, tags=["Health"])

register_change_listeners(SessionLocal)


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 ParkPay backend starting up...")
    create_tables()
    logger.info("✅ Database tables ready")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 ParkPay backend shutting down...")
