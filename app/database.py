from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from app.config import settings


def build_engine(url: str):
    connect_args = {}
    if url.startswith("sqlite"):
        # sessions are handed between threadpool workers; wait on writer locks instead of failing fast
        connect_args = {"check_same_thread": False, "timeout": 30}
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
