"""
Database session management
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.settings import settings
from app.logging_config import get_logger

logger = get_logger(__name__)

connection_string = settings.database_url

if settings.DATABASE_URL:
    logger.info("Database connection: explicit DATABASE_URL")
else:
    logger.info(f"Database connection: {settings.DB_HOST}:{settings.DB_PORT}/{settings.DB_NAME} (PostgreSQL)")

engine = create_engine(
    connection_string,
    echo=settings.DEBUG,
    pool_pre_ping=True,  # Verify connections before using
    pool_recycle=3600,  # Recycle connections after 1 hour
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """
    Dependency for getting database session

    Usage in FastAPI endpoints:
        @router.get("/rolls")
        def list_rolls(db: Session = Depends(get_db)):
            return db.query(Roll).all()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
