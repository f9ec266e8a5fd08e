import logging
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from ptoflow.core.config import settings
from ptoflow.core.errors import PTOFlowError
from ptoflow.api.responses import ptoflow_error_handler, request_validation_handler
from ptoflow.api.v1.users import router as users_router
from ptoflow.api.v1.teams import router as teams_router
from ptoflow.api.v1.pto_requests import router as pto_requests_router
from ptoflow.api.v1.admin import router as admin_router
from ptoflow.db.mongo import close_mongo_client
from ptoflow.db.mongo_indexes import ensure_indexes
from ptoflow.services.container import build_services

logger = logging.getLogger("uvicorn.error")
logger.setLevel(settings.LOG_LEVEL)

app = FastAPI(title="PTOFlow Backend")


def cors_origins() -> list[str]:
    # Vite dev server plus whatever the deployment configures
    origins = {"http://localhost:5173", "http://127.0.0.1:5173", settings.FRONTEND_BASE_URL, *settings.ALLOWED_ORIGINS}
    return sorted({o.rstrip("/") for o in origins if o})


app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Every domain failure reaches the client as {"success": false, "message", "code"}
app.add_exception_handler(PTOFlowError, ptoflow_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)


@app.get("/")
def read_root():
    return {"message": "Welcome to PTOFlow Backend"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


# Mount API routers
app.include_router(users_router, prefix="/api/v1")
app.include_router(teams_router, prefix="/api/v1")
app.include_router(pto_requests_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup():
    app.state.services = build_services()
    if settings.STORAGE_BACKEND != "mongo":
        return
    # A missing index only slows collection scans
    try:
        await ensure_indexes()
    except Exception as exc:
        logger.warning("Could not create kv indexes: %s", exc)


@app.on_event("shutdown")
async def on_shutdown():
    close_mongo_client()
