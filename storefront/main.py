# storefront/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from storefront.api import include_routers
from storefront.data.database import Base, engine, SessionLocal
from storefront.data.seed import seed_products
from storefront.utils.settings import SEED_DEMO_DATA
from storefront.utils.logging import get_logger

# IMPORT WSZYSTKICH MODELI PRZED CREATE_ALL
import storefront.data.models  # noqa: F401

logger = get_logger(__name__)


def init_db():
    logger.info(f"Inicjalizacja bazy, tabele: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Nie udalo sie utworzyc tabel: {e}")
        raise

    if SEED_DEMO_DATA:
        db = SessionLocal()
        try:
            seed_products(db)
        finally:
            db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront Cart & Checkout",
        version="1.0.0",
        lifespan=lifespan,
    )
    return include_routers(app)


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
