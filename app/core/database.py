from sqlalchemy import create_engine, text
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
from app.core.config import settings


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # SQLite is only used for local development
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,  # Verify connections before using them
        "pool_size": 10,  # Connection pool size
        "max_overflow": 20,  # Allow up to 20 connections beyond pool_size
    }


# Create SQLAlchemy engine
engine = create_engine(settings.SQLALCHEMY_DATABASE_URL, **_engine_kwargs(settings.SQLALCHEMY_DATABASE_URL))

# Create SessionLocal class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create Base class for models
Base = declarative_base()


def get_db():
    """
    Dependency function to get database session.
    Used in FastAPI endpoints with Depends(get_db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_database_connection(bind=None) -> None:
    """
    Ping the database. Raises whatever the driver raises when it is unreachable.
    """
    with (bind or engine).connect() as conn:
        conn.execute(text("SELECT 1"))


def init_db():
    """
    Initialize database.

    We rely on Alembic for table creation, so this only imports the models
    to register them on Base.metadata.

    Use "alembic upgrade head" to create/update database schema.
    """
    from app.models import (  # noqa: F401
        user,
        company,
        contractor_join_request,
        application_assignment,
        registration_verification,
        user_session,
    )
