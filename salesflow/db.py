from __future__ import annotations

from collections.abc import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from salesflow.config import settings


def _install_sqlite_savepoint_support(engine: Engine) -> None:
    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN.
    @event.listens_for(engine, 'connect')
    def _on_connect(dbapi_connection, _connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, 'begin')
    def _on_begin(conn):
        conn.exec_driver_sql('BEGIN')


def build_engine(database_url: str, *, echo: bool = False) -> Engine:
    if database_url.startswith('sqlite'):
        kwargs: dict = {'connect_args': {'check_same_thread': False}}
        if ':memory:' in database_url or database_url.rstrip('/') == 'sqlite:':
            kwargs['poolclass'] = StaticPool
        engine = create_engine(database_url, echo=echo, **kwargs)
        _install_sqlite_savepoint_support(engine)
        return engine
    return create_engine(database_url, echo=echo, pool_pre_ping=True)


engine = build_engine(settings.database_url_normalized, echo=settings.database_echo)
SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


def get_db() -> Iterator[Session]:
    with SessionLocal() as db:
        yield db
