# storefront/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from dotenv import load_dotenv

from storefront.config import settings

load_dotenv()

Base = declarative_base()


def make_engine(url: str = None, **kwargs):
    """Builds the engine behind the durable client store."""
    url = url or settings.STORE_DATABASE_URL

    # SQLAlchemy needs the postgresql:// scheme
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)

    # Tabs share one SQLite file across threads
    if "sqlite" in url:
        kwargs.setdefault("connect_args", {"check_same_thread": False})

    return create_engine(url, **kwargs)


def make_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine):
    # Register tables on Base.metadata before creating them
    from storefront.models import log, store_entry  # noqa: F401

    Base.metadata.create_all(bind=engine)
