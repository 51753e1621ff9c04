from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from clearstock.config import Settings, get_settings
from clearstock.core.logging import setup_logging
from clearstock.database import Base, engine, ensure_sqlite_schema
from clearstock.models import import_all_models
from clearstock.routers import (
    batches_router,
    dashboard_router,
    health_router,
    history_router,
    restaurants_router,
)

setup_logging()
settings: Settings = get_settings()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    import_all_models()
    Base.metadata.create_all(bind=engine)
    ensure_sqlite_schema()
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.include_router(health_router)
app.include_router(restaurants_router)
app.include_router(batches_router)
app.include_router(dashboard_router)
app.include_router(history_router)


@app.get("/")
def root():
    return RedirectResponse(url="/health", status_code=302)


__all__ = ["app", "root"]
