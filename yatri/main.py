"""FastAPI application entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from yatri.config import get_settings
from yatri.database import run_migrations
from yatri.logging_config import configure_logging
from yatri.routers import auth, notifications, progress, staff
from yatri.services.mail_transport import MailTransport
from yatri.services.notification_service import NotificationService


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Apply migrations and own the mail transport for the process lifetime."""
    configure_logging()
    settings = get_settings()
    run_migrations()

    transport = MailTransport(settings)
    await transport.open()
    app.state.notifier = NotificationService(
        transport,
        broadcast_workers=settings.broadcast_workers,
    )
    logger.info("YATRI portal started (email available: %s)", transport.available)
    try:
        yield
    finally:
        await transport.close()
        app.state.notifier = None


app = FastAPI(title="YATRI Training Portal API", lifespan=lifespan)


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Simple health probe for liveness checks."""
    return {"status": "ok"}


# Include routers
app.include_router(auth.router)
app.include_router(staff.router)
app.include_router(progress.router)
app.include_router(notifications.router)


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("yatri.main:app", host=settings.app_host, port=settings.app_port)
