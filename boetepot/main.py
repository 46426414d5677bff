import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from boetepot.core.config import settings
from boetepot.core.database import init_db
from boetepot.core.logging import configure_logging
from boetepot.core.exceptions import register_exception_handlers
from boetepot.middleware import CorrelationIdMiddleware

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)

# Middleware: correlation id
app.add_middleware(CorrelationIdMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Route imports
from boetepot.api.health import router as health_router
from boetepot.api.v1 import auth as auth_router
from boetepot.api.v1 import fines as v1_fines
from boetepot.api.v1 import players as v1_players
from boetepot.api.v1 import public as v1_public
from boetepot.api.v1 import reasons as v1_reasons
from boetepot.ui import admin as ui_admin
from boetepot.ui import public as ui_public

# Register routers
app.include_router(health_router, prefix="/api", tags=["health"])

# v1 API routes
app.include_router(auth_router.router, prefix="/api/v1", tags=["auth"])
app.include_router(v1_public.router, prefix="/api/v1", tags=["public"])
app.include_router(v1_players.router, prefix="/api/v1", tags=["players"])
app.include_router(v1_reasons.router, prefix="/api/v1", tags=["reasons"])
app.include_router(v1_fines.router, prefix="/api/v1", tags=["fines"])

# HTML pages
app.include_router(ui_public.router)
app.include_router(ui_admin.router)


# Exception handlers
register_exception_handlers(app)
ui_admin.register_login_redirect(app)


@app.on_event("startup")
async def on_startup():
    logger.info("Starting app", extra={"app": settings.APP_NAME})

    if settings.MIGRATE_ON_START:
        logger.info("MIGRATE_ON_START enabled: creating missing tables")
        await init_db()


@app.on_event("shutdown")
async def on_shutdown():
    logger.info("Shutting down")
