from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from typing import Generator
from .config import settings


def engine_options(url: str) -> dict:
    """Connection arguments for the configured backend."""
    if url.startswith("sqlite"):
        # Sessions are handed across threadpool workers by FastAPI
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": 5,
        "max_overflow": 10,
        "pool_timeout": 30,
        "pool_recycle": 1800,  # Recycle connections after 30 minutes
    }


engine = create_engine(settings.get_database_url, **engine_options(settings.get_database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Database dependency
def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# Database initialization
def init_db():
    """Initialize database tables."""
    # Import models so their tables are registered on the metadata
    from ..models import user, patient, doctor, appointment  # noqa: F401
    Base.metadata.create_all(bind=engine)
