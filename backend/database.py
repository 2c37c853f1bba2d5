import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker


logger = logging.getLogger(__name__)

engine: Engine | None = None

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
)

Base = declarative_base()


def init_engine(database_url: str, **engine_kwargs) -> Engine:
    """Create the process-wide engine and bind the session factory to it."""
    global engine

    if database_url.startswith('sqlite'):
        engine_kwargs.setdefault('connect_args', {'check_same_thread': False})
    else:
        engine_kwargs.setdefault('pool_pre_ping', True)

    engine = create_engine(database_url, **engine_kwargs)
    SessionLocal.configure(bind=engine)
    logger.info('Database engine initialized for %s', engine.url.render_as_string(hide_password=True))
    return engine


def create_schema() -> None:
    # Importing the models registers their tables on Base.metadata.
    from backend.models import course, lesson, user  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
