from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from interview_app.core.config import settings


def build_engine(url: str):
    connect_args = {}
    if url.startswith("sqlite"):
        # sessions are opened from the event loop thread, not the importing one
        connect_args["check_same_thread"] = False
    return create_engine(url, future=True, connect_args=connect_args)


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

Base = declarative_base()


def init_db(bind=None):
    # registers the tables on Base.metadata
    from interview_app.models import kv_entry  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
