"""FastAPI application entry point."""
import logging
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from group_reminders.config import settings
from group_reminders.database import Base, engine

# Import routers
from group_reminders.routers import profiles, groups, group_creation
from group_reminders.services.creation_workflow import WorkflowStateError
from group_reminders.services.group_session import OperationInProgress

# Import all models so Base.metadata knows about them
from group_reminders.models.profile import Profile                            # noqa: F401
from group_reminders.models.group import Group, GroupReminder, Membership    # noqa: F401

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Group Reminders",
    description="Shared reminder groups: create a group, add members, share reminders",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(profiles.router, prefix="/api/profiles", tags=["Profiles"])
app.include_router(groups.router, prefix="/api/groups", tags=["Groups"])
app.include_router(group_creation.router, prefix="/api/group-creation", tags=["GroupCreation"])


@app.exception_handler(OperationInProgress)
async def operation_in_progress_handler(request: Request, exc: OperationInProgress):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


@app.exception_handler(WorkflowStateError)
async def workflow_state_handler(request: Request, exc: WorkflowStateError):
    logger.info("Rejected out-of-step creation request: %s", exc)
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
