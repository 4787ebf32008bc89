from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from luxeledger.api.customers import router as customers_router
from luxeledger.api.health import router as health_router
from luxeledger.api.invoice import router as invoice_router
from luxeledger.config import get_settings
from luxeledger.dependencies.services import get_billing_client_cached


def configure_logging(level: str = "INFO") -> None:
    """Ensure application logs use the configured level."""
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    else:
        root_logger.setLevel(level)


configure_logging(get_settings().log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    settings_snapshot = settings.model_dump(exclude={"billing_service_token"})
    logger.info("Application settings on startup: %s", settings_snapshot)

    client = get_billing_client_cached()
    logger.info("Application startup complete.")

    try:
        yield
    finally:
        logger.info("Closing billing client connection.")
        await client.close()
        logger.info("Application shutdown complete.")


settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    lifespan=lifespan,
    redirect_slashes=False,
)

app.include_router(customers_router, prefix="/customers")
app.include_router(invoice_router, prefix="/invoices")
app.include_router(health_router)
