from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from seatdesk.core.config import settings


def build_engine(url: str):
    # SQLite (local runs, tests) needs the same connection usable across threads
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
