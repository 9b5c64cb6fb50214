import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from .routes import router
from ..core.config import settings
from ..core.orchestrator import build_aggregator

logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

@asynccontextmanager
async def lifespan(app: FastAPI):
    async with build_aggregator(settings) as aggregator:
        app.state.aggregator = aggregator
        yield
    app.state.aggregator = None

app = FastAPI(title="POI Finder API", version="0.1.0", lifespan=lifespan)
app.include_router(router, prefix="/v1")
