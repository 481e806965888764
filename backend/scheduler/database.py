from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .config import settings

# Connection execution option that makes the next SQLite transaction
# start with BEGIN IMMEDIATE instead of a deferred BEGIN.
WRITE_LOCK_OPTION = "scheduler_write_lock"


def make_engine(url: str, **kwargs) -> Engine:
    """
    Create an engine for the appointment store.

    On SQLite, transactions opened through begin_write() start with
    BEGIN IMMEDIATE so that the conflict check and the insert of a booking
    run under the write lock. Plain reads use a deferred BEGIN and never
    wait for writers to queue up.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, **kwargs)

    connect_args = kwargs.pop("connect_args", {})
    # check_same_thread=False: FastAPI serves sync endpoints from a threadpool
    connect_args.setdefault("check_same_thread", False)

    if url.startswith("sqlite:///") and url != "sqlite:///:memory:":
        Path(url.replace("sqlite:///", "", 1)).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(url, connect_args=connect_args, **kwargs)

    @event.listens_for(engine, "connect")
    def enable_sqlite_fk(dbapi_connection, _):
        # hand transaction control to the "begin" listener below
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def begin_sqlite(conn):
        if conn.get_execution_options().get(WRITE_LOCK_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")

    return engine


def begin_write(db: Session) -> None:
    """
    Open the session's next transaction as a write transaction.

    A read transaction still open on the session is rolled back first, so
    the write lock is taken before the first statement of the unit of work.
    On other databases the option is ignored and row locks do the job.
    """
    if db.in_transaction():
        db.rollback()
    db.connection(execution_options={WRITE_LOCK_OPTION: True})


engine = make_engine(settings.resolved_database_url)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
