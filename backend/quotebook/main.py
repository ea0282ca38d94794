import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from quotebook.config import settings
from quotebook.database import create_tables
from quotebook.middleware.exceptions import register_exception_handlers
from quotebook.routers import bank_info, clients, company_info, health, invoices, quotations
from quotebook.utils.cache import close_redis

logger = logging.getLogger("quotebook")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create missing tables on startup (when enabled); close Redis on shutdown."""
    if settings.auto_create_tables:
        await create_tables()
        logger.info("Database tables ensured")
    try:
        yield
    finally:
        await close_redis()


app = FastAPI(
    title="Quotebook",
    description="Quotations and invoices for small businesses",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
# Public
app.include_router(health.router)

# Owner-scoped (require a bearer token)
app.include_router(company_info.router, prefix="/api/company-info", tags=["company-info"])
app.include_router(clients.router, prefix="/api/clients", tags=["clients"])
app.include_router(bank_info.router, prefix="/api/bank-info", tags=["bank-info"])
app.include_router(quotations.router, prefix="/api/quotations", tags=["quotations"])
app.include_router(invoices.router, prefix="/api/invoices", tags=["invoices"])
