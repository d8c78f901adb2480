from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from config import DATABASE_URL


def build_engine(url: str):
    """Sync engine. SQLite connections are shared across threads (TestClient, scheduler)."""
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# create_all runs from main.py once the models are imported


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
