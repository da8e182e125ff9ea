from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# ✅ Import All API Routes
from recode.api.routes import admin, ai, health, solution, usage

# ✅ Import Core Services
from recode.core.config import (
    CORS_ORIGINS,
    DATABASE_URL,
    IGNORE_USAGE_LIMITS,
    LOG_LEVEL,
    MEMORY_CACHE_MAX_ENTRIES,
    REDIS_URL,
    SOLUTION_CACHE_TTL_SECONDS,
)
from recode.core.errors import RecodeError
from recode.core.logging_config import sanitize_log_data, setup_logging
from recode.core.security import missing_credentials
from recode.db.init_db import init_db
from recode.db.session import SessionLocal
from recode.services.solution_cache import build_solution_cache

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(LOG_LEVEL)
    init_db()
    settings = sanitize_log_data({
        "database_url": DATABASE_URL,
        "redis_url": REDIS_URL,
        "ignore_usage_limits": IGNORE_USAGE_LIMITS,
        "cache_ttl_seconds": SOLUTION_CACHE_TTL_SECONDS,
    })
    logger.info(f"ReCode API started: {settings}")
    if IGNORE_USAGE_LIMITS:
        logger.warning("IGNORE_USAGE_LIMITS is set - daily quotas are counted but not enforced")
    for name in missing_credentials():
        logger.warning(f"{name} is not set - the matching authentication path rejects every request")
    yield


# ============================================
# ✅ FASTAPI APP INIT
# ============================================

app = FastAPI(title="ReCode API", lifespan=lifespan)

# ✅ CORS: ONLY ALLOW CONFIGURED FRONTENDS / EXTENSION
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)

# One cache per process; routes get it through api.deps
app.state.solution_cache = build_solution_cache(
    SessionLocal,
    redis_url=REDIS_URL,
    ttl_seconds=SOLUTION_CACHE_TTL_SECONDS,
    memory_max_entries=MEMORY_CACHE_MAX_ENTRIES,
)
app.state.llm_provider = None


# ============================================
# ✅ ERROR HANDLING
# ============================================

@app.exception_handler(RecodeError)
async def recode_error_handler(request: Request, exc: RecodeError):
    exc.log()
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# ============================================
# ✅ REGISTER ALL ROUTERS
# ============================================

app.include_router(usage.router)
app.include_router(solution.router)
app.include_router(ai.router)
app.include_router(admin.router)
app.include_router(health.router)


# ============================================
# ✅ ROOT ENDPOINT
# ============================================

@app.get("/")
def root():
    return {"status": "ReCode API running"}
