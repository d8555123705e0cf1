from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from videoscripts.config import get_settings

settings = get_settings()


def create_db_engine(database_url: str):
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args)


engine = create_db_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None) -> None:
    """Create every table known to the model registry."""
    import videoscripts.models  # noqa: F401  registers the mappers

    Base.metadata.create_all(bind=bind or engine)


@contextmanager
def get_db(actor: str = "system"):
    """One session per run; `actor` is written into the audit columns."""
    db = SessionLocal(info={"actor": actor})
    try:
        yield db
    finally:
        db.close()
