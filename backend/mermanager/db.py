import logging
import os

from dotenv import load_dotenv
from sqlmodel import SQLModel, create_engine, Session

load_dotenv()
logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///mermanager.db")


def make_engine(url: str = DATABASE_URL):
    connect_args = {}
    if url.startswith("sqlite"):
        # FastAPI runs sync endpoints on a thread pool
        connect_args["check_same_thread"] = False
    return create_engine(url, echo=False, connect_args=connect_args)


engine = make_engine()


def create_db_and_tables(bind=None):
    # Table models must be imported before create_all sees them
    from mermanager.models import listing_db, user_db  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
    logger.debug("Database tables ensured")


def get_session(bind=None):
    return Session(bind or engine)
