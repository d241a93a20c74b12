"""
Tax Estimator - FastAPI Backend
Features:
- Federal regular income tax through year-specific bracket tables
- Long-term capital gains stacked on top of ordinary income
- Standard vs itemized deduction with the 65+ add-on
- Live bracket tables with built-in fallback
- Snap points for bracket-aligned income sliders
- Chart data and CSV export of the breakdown
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from config import get_settings
from api.estimates import router as estimates_router, get_tax_data_cache

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


def prefetch_tax_data(cache, year):
    """Select the default year and load its tables (blocking HTTP)"""
    cache.select(year)
    if cache.request(year):
        cache.load(year)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.prefetch:
        await run_in_threadpool(prefetch_tax_data, get_tax_data_cache(), settings.default_year)
    yield


app = FastAPI(
    title="Tax Estimator API",
    description="Federal income and capital gains tax estimates with bracket breakdowns",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(estimates_router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint for deployment"""
    return {"status": "healthy", "service": "tax-estimator-api"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=True)
