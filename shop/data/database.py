"""SQLAlchemy engine, session factory and declarative base.

``SessionLocal`` is the application's transaction manager: services that
need their own transactions receive it (or a test replacement) through
:func:`get_session_factory` instead of importing it directly.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from shop.utils.settings import DATABASE_URL


class Base(DeclarativeBase):
    pass


def build_engine(url: str, **kwargs) -> Engine:
    """Create an engine for ``url``.

    SQLite has no ``SELECT ... FOR UPDATE``; there every transaction is
    opened with ``BEGIN IMMEDIATE`` so concurrent writers are serialised
    for the whole transaction, the same guarantee the row locks give on
    PostgreSQL or MySQL.
    """
    if url.startswith("sqlite"):
        engine = create_engine(url, connect_args={"timeout": 30}, **kwargs)

        @event.listens_for(engine, "connect")
        def _disable_pysqlite_transactions(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    return create_engine(url, pool_pre_ping=True, **kwargs)


def build_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)


engine = build_engine(DATABASE_URL)
SessionLocal = build_session_factory(engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    return SessionLocal
