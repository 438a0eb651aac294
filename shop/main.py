# shop/main.py
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from sqlalchemy import text

from shop.api import create_app
from shop.data.database import Base, engine
from shop.utils.logging import get_logger
from shop.utils.retry import db_retry

import shop.data.models  # noqa: F401  registers every model in Base.metadata

logger = get_logger(__name__)


@db_retry()
def wait_for_db():
    with engine.connect() as conn:
        conn.execute(text("select 1"))


def init_db():
    wait_for_db()
    logger.info(f"Creating tables: {list(Base.metadata.tables.keys())}")
    Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = create_app(lifespan=lifespan)

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
