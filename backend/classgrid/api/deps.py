from collections.abc import Generator

from sqlalchemy.orm import Session

from classgrid.core.config import get_settings
from classgrid.db.session import SessionLocal
from classgrid.services.recommender import RecommenderClient


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_recommender() -> RecommenderClient:
    return RecommenderClient.from_settings(get_settings())
