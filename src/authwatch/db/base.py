from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

load_dotenv()

Base = declarative_base()


def _create_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        # the background writer thread uses connections created elsewhere
        connect_args = {"check_same_thread": False}
    return create_engine(
        database_url,
        connect_args=connect_args,
        future=True,
        pool_pre_ping=True,
    )


@lru_cache()
def get_engine(database_url: Optional[str] = None) -> Engine:
    url = database_url or os.getenv("AUTHWATCH_DATABASE_URL") or os.getenv(
        "DATABASE_URL", "sqlite:///./authwatch.db"
    )
    return _create_engine(url)
