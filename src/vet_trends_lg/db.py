import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .settings import DEFAULT_DB_PATH

MEMORY = ":memory:"


def get_engine(path: str = DEFAULT_DB_PATH):
    if path == MEMORY:
        # one shared connection so every session sees the same in-memory database
        return create_engine(
            "sqlite://",
            future=True,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return create_engine(f"sqlite:///{path}", future=True, echo=False)


def make_session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def bootstrap_db(engine):
    from .models import Base
    Base.metadata.create_all(engine)
