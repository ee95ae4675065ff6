from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from sqlalchemy import text
import logging

from app.config.settings import settings
from app.db.base import get_engine
from app.db.base import get_session_factory
from app.db.session import set_global_session_factory

# -------------------------------------------------------------------------------------
# Logging
# -------------------------------------------------------------------------------------
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application start-up & shutdown hooks."""
    # ------------------------------------------------------------------ start‑up -----
    logger.info("Application startup …")

    engine = None
    try:
        logger.info("Initializing Database Engine...")
        engine = await get_engine(str(settings.database_url))
        app.state.engine = engine
        logger.info("DB engine ready and stored in app state.")

        # Session factory in app state AND globally (tool handlers use it)
        session_factory = await get_session_factory(engine)
        app.state.session_factory = session_factory
        set_global_session_factory(session_factory)
        logger.info("DB session factory ready (globally accessible).")
    except Exception as e:
        logger.critical(f"CRITICAL ERROR DURING STARTUP INITIALIZATIONS: {e}", exc_info=True)
        if engine:
            try:
                await engine.dispose()
                logger.info("Disposed engine after startup failure.")
            except Exception as dispose_e:
                logger.error(f"Error disposing engine after startup failure: {dispose_e}")
        raise

    # ------------------------------------------------ give control back
    yield

    # ------------------------------------------------ shutdown --------
    logger.info("Application shutdown …")
    if engine:
        try:
            await engine.dispose()
            logger.info("DB engine disposed")
        except Exception:
            logger.exception("Error disposing DB engine")

    logger.info("Shutdown complete")


# -------------------------------------------------------------------------------------
# FastAPI application instance
# -------------------------------------------------------------------------------------
app = FastAPI(title="AI Receptionist Scheduling", lifespan=lifespan)

# CORS -------------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(o) for o in settings.cors_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ----------------------------------------------------------------- health‑check -----
@app.get("/health")
async def health_check(request: Request):
    database = "not initialised"
    if engine := getattr(request.app.state, "engine", None):
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            database = "ok"
        except Exception as e:
            logger.error(f"Health check: database unreachable: {e}")
            database = "unreachable"

    return {"status": "ok", "database": database}


# ------------------------------------------------------------------- routes ---------
from app.routes.tool_call.router import router as tool_call_router  # noqa: E402  (after app creation)

app.include_router(tool_call_router)
