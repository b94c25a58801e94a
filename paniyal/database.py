from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from paniyal.config.settings import settings

DATABASE_URL = settings.DATABASE_URL


def build_engine(database_url: str):
    """Create an engine with the connect args the backend needs"""
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})
    # Hosted PostgreSQL keeps sslmode=require
    return create_engine(database_url, connect_args={"sslmode": settings.DB_SSLMODE})


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Request-scoped session dependency
def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
