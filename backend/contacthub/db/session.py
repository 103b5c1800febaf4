import os
from typing import Any, Generator

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from contacthub.core.config import settings
from contacthub.core.logging_setup import logger
import contacthub.db.base  # noqa: F401


def build_engine(database_url: str, **kwargs: Any) -> Engine:
    connect_args: dict[str, Any] = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = settings.database_busy_timeout_seconds
    elif database_url.startswith("postgresql"):
        client_encoding = os.getenv("POSTGRES_CLIENT_ENCODING", "UTF8")
        connect_args["options"] = f"-c client_encoding={client_encoding}"
    connect_args.update(kwargs.pop("connect_args", {}))
    return create_engine(
        database_url,
        echo=settings.debug,
        future=True,
        connect_args=connect_args,
        **kwargs,
    )


engine = build_engine(settings.database_url)


def init_db() -> None:
    SQLModel.metadata.create_all(bind=engine)
    logger.info("Database schema ready (%s)", engine.dialect.name)


def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session
