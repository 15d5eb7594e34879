from docsearch.core.logging import get_logger
from docsearch.utils.vectors import EMBEDDING_DIMENSION, cosine_distance
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine, SQLModel

logger = get_logger(__name__)

# Seconds a connection waits on a locked database before failing
SQLITE_BUSY_TIMEOUT = 30


def create_db_engine(
    database_url: str,
    dimension: int = EMBEDDING_DIMENSION,
    echo: bool = False,
) -> Engine:
    """
    Create a SQLite engine whose connections all know `vec_distance_cosine`.

    The function is registered per connection of this engine only, so two
    stores with different dimensions can live in one process.
    """
    connect_args = {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT}
    kwargs = {}
    if _is_memory_url(database_url):
        # One shared connection, otherwise every thread sees an empty database
        kwargs["poolclass"] = StaticPool

    engine = create_engine(database_url, echo=echo, connect_args=connect_args, **kwargs)

    @event.listens_for(engine, "connect")
    def _configure_connection(dbapi_connection, connection_record):
        def _distance(a, b):
            return cosine_distance(a, b, dimension)

        dbapi_connection.create_function("vec_distance_cosine", 2, _distance, deterministic=True)

        cursor = dbapi_connection.cursor()
        # WAL lets readers proceed while a writer commits
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    logger.info("database_engine_configured", url=database_url, dimension=dimension)
    return engine


def init_db(engine: Engine):
    """Create the documents and chunks tables if they do not exist."""
    # Register tables on the metadata
    from docsearch import schema  # noqa: F401

    SQLModel.metadata.create_all(engine)
    logger.info("database_initialized", url=str(engine.url))


def _is_memory_url(database_url: str) -> bool:
    return database_url in ("sqlite://", "sqlite:///:memory:") or ":memory:" in database_url
