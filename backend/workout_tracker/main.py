from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from workout_tracker.api.sessions import router as sessions_router
from workout_tracker.api.pending import router as pending_router
from workout_tracker.core.config import settings
from workout_tracker.core.logger import setup_logger
from workout_tracker.db import Base, engine
from workout_tracker.models.pending_workout import PendingWorkout  # noqa: F401  (import ensures table is registered)
from workout_tracker.services.registry import SessionRegistry


setup_logger(level=settings.log_level, log_file=settings.log_file)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Never leave a location subscription or timer running after shutdown
    app.state.registry.close_all()


app = FastAPI(lifespan=lifespan)
app.state.registry = SessionRegistry()

# Allow CORS for the mobile client and local tools
origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Create DB tables (pending_workouts) on startup
Base.metadata.create_all(bind=engine)

app.include_router(sessions_router)
app.include_router(pending_router)


@app.get("/")
def root():
    return {"message": "Workout tracker backend is running"}
