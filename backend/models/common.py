"""Common database utilities and base models"""

import functools

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlmodel import create_engine, Session
from typing import Generator


@functools.cache
def get_engine():  # pragma: no cover
    from settings import DATABASE_URL

    connect_args = {}
    if DATABASE_URL.startswith("sqlite"):
        # sessions are opened in the threadpool and used from the event loop
        connect_args["check_same_thread"] = False
    return create_engine(DATABASE_URL, connect_args=connect_args)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def get_session() -> Generator[Session, None, None]:  # pragma: no cover
    """Get database session for FastAPI dependency, always closes session."""
    session = Session(get_engine(), expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()


def parse_bool(bool_str: str | bool):
    if isinstance(bool_str, str):
        return bool_str.lower() in ("true", "1")
    return bool(bool_str)
