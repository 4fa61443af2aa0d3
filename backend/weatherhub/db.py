from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool


# --------------------------------------------------------------------
# Engine mit soliden Defaults
# --------------------------------------------------------------------
def make_engine(database_url: str, pool_size: int = 5) -> Engine:
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            # eine einzige Verbindung, sonst sieht jede Session eine leere DB
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, future=True, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(
        url,
        pool_pre_ping=True,          # invalid connections werden erkannt
        pool_size=pool_size,
        future=True,                 # moderne SQLAlchemy-APIs
    )


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    # SQLite prüft FOREIGN KEYs nur mit diesem Pragma
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Session Factory
def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False, class_=Session, future=True)


# --------------------------------------------------------------------
# Contextmanager, eine Session pro Store-Aufruf
# Nutzung: with session_scope(factory) as s: ...
# --------------------------------------------------------------------
@contextmanager
def session_scope(factory: sessionmaker) -> Generator[Session, None, None]:
    session = factory()
    try:
        yield session
    finally:
        session.close()
