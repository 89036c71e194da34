from typing import Generator
from meetpost.db.base import SessionLocal, engine, Base
from meetpost.db import models  # noqa: F401  (registers tables on Base.metadata)
from meetpost.services.llm_client import LLMClient


def init_db() -> None:
    Base.metadata.create_all(bind=engine)


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_llm_client() -> Generator:
    client = LLMClient()
    try:
        yield client
    finally:
        client.close()
