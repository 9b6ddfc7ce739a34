from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from . import config
from .models import Base


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        # Requests run on a threadpool; wait on the write lock instead of failing fast.
        return {"check_same_thread": False, "timeout": 30}
    return {}


engine = create_engine(config.DATABASE_URL, connect_args=_connect_args(config.DATABASE_URL))
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db():
    Base.metadata.create_all(bind=engine)


def drop_db():
    Base.metadata.drop_all(bind=engine)
