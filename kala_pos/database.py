"""Database configuration and initialization."""
import os
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

# Create SQLAlchemy base
Base = declarative_base()

# Global session and engine
engine = None
db_session = None

# Connection execution option set by transaction() for write scopes
WRITE_INTENT_OPTION = 'kala_pos_write_intent'


def _enable_sqlite_transactions(sqlite_engine):
    """
    Let SQLAlchemy own BEGIN/SAVEPOINT on pysqlite connections.

    The driver's implicit transaction handling otherwise defers BEGIN until
    the first DML statement and breaks SAVEPOINT, which the import uses for
    per-row isolation.
    """

    @event.listens_for(sqlite_engine, 'connect')
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()

    @event.listens_for(sqlite_engine, 'begin')
    def do_begin(conn):
        if conn.get_execution_options().get(WRITE_INTENT_OPTION):
            # Write lock held from the first statement; other writers wait on the busy timeout
            conn.exec_driver_sql('BEGIN IMMEDIATE')
        else:
            conn.exec_driver_sql('BEGIN')


def _build_engine(database_uri: str, echo: bool):
    url = make_url(database_uri)
    if url.get_backend_name() != 'sqlite':
        return create_engine(
            database_uri,
            echo=echo,
            pool_pre_ping=True,  # Enable connection health checks
            pool_size=10,
            max_overflow=20
        )

    if url.database in (None, '', ':memory:'):
        # One shared connection, otherwise every session gets its own empty database
        sqlite_engine = create_engine(
            database_uri,
            echo=echo,
            connect_args={'check_same_thread': False},
            poolclass=StaticPool
        )
    else:
        directory = os.path.dirname(os.path.abspath(url.database))
        os.makedirs(directory, exist_ok=True)
        sqlite_engine = create_engine(
            database_uri,
            echo=echo,
            connect_args={'check_same_thread': False, 'timeout': 15}
        )

    _enable_sqlite_transactions(sqlite_engine)
    return sqlite_engine


def init_db(app):
    """Initialize database connection."""
    global engine, db_session

    if db_session is not None:
        db_session.remove()
    if engine is not None:
        engine.dispose()

    engine = _build_engine(
        app.config['SQLALCHEMY_DATABASE_URI'],
        app.config.get('SQLALCHEMY_ECHO', False)
    )

    db_session = scoped_session(
        sessionmaker(autocommit=False, autoflush=False, bind=engine)
    )

    Base.query = db_session.query_property()

    # Register teardown
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close database session and rollback on error."""
        if exception:
            db_session.rollback()
        db_session.remove()


def create_all():
    """Create every table known to the models package."""
    import kala_pos.models  # noqa: F401  (registers mappers on Base)
    Base.metadata.create_all(bind=engine)


def get_session():
    """Get database session."""
    return db_session


@contextmanager
def transaction(session):
    """
    Run a unit of work: commit on success, roll back on any error.

    When the session has no transaction open yet, the one started here is
    a write transaction (``BEGIN IMMEDIATE`` on SQLite).

    Usage:
        with transaction(session):
            ...
    """
    if not session.in_transaction():
        session.connection(execution_options={WRITE_INTENT_OPTION: True})
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
