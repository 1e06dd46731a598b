from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import get_settings


def create_db_engine(database_url: str, *, echo: bool = False) -> Engine:
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, pool_pre_ping=True)

    options: dict = {"connect_args": {"check_same_thread": False}}
    # In-memory databases live on a single shared connection, so there is no second writer.
    in_memory = make_url(database_url).database in (None, "", ":memory:")
    if in_memory:
        options["poolclass"] = StaticPool
    sqlite_engine = create_engine(database_url, echo=echo, **options)

    @event.listens_for(sqlite_engine, "connect")
    def _configure_connection(dbapi_connection, _record) -> None:
        if not in_memory:
            # pysqlite defers BEGIN until the first write; take over transaction control.
            dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    if not in_memory:

        @event.listens_for(sqlite_engine, "begin")
        def _begin_immediate(connection) -> None:
            # Reads made during a commit must hold the write lock until the commit ends.
            connection.exec_driver_sql("BEGIN IMMEDIATE")

    return sqlite_engine


settings = get_settings()

engine = create_db_engine(settings.database_url, echo=settings.database_echo)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
