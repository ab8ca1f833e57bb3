from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from .database import engine, Base
from .routers import estimate, quotes
from . import models  # noqa: F401  registers tables on Base

logger = logging.getLogger("weldquote")

# Create tables (single table, no migrations)
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="ARGO-72 Welding Quotes",
    description="Lead intake and price estimation for welding jobs",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(estimate.router, prefix="/api")
app.include_router(quotes.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok", "app": "weldquote"}


@app.on_event("startup")
def log_tariff():
    """Load the active tariff once and log which one live quotes will use."""
    from .pricing.registry import active_tariff
    tariff = active_tariff()
    logger.info("Pricing with tariff %s (%s)", tariff.version, tariff.currency)
