from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from workout_tracker.core.config import settings

# SQLAlchemy Base class for models to inherit
Base = declarative_base()

engine_kwargs = {"pool_pre_ping": True}  # helps avoid stale connections
if settings.database_url.startswith("sqlite"):
    # One shared connection so an in-memory database is visible to every thread
    engine_kwargs = {
        "connect_args": {"check_same_thread": False},
        "poolclass": StaticPool,
    }

engine = create_engine(settings.database_url, **engine_kwargs)

# Factory that creates DB sessions
DbSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Dependency we will use in FastAPI routes
def get_db():
    db = DbSession()
    try:
        yield db
    finally:
        db.close()
