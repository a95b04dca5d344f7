# api/server.py
# ============================================================================
# NUDE STOREFRONT v1.0 — FASTAPI SERVER
# ============================================================================
# Two order endpoints (create-order, Mercado Pago webhook) plus health.
# Every failure is caught here and turned into a status code; nothing a
# request does can take the process down.
# ============================================================================

import logging
from contextlib import asynccontextmanager
from typing import Mapping, Optional

import structlog
import uvicorn
from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse

from config import StoreConfig
from errors import AuthError, ConfigurationError, StorefrontError, ValidationError
from services.notifier import EmailNotifier
from services.order_lifecycle import OrderLifecycle
from services.payment_gateway import WEBHOOK_ROUTE, MercadoPagoClient
from services.signature import SIGNATURE_HEADER
from storage.github_storage import GitHubFileStore

VERSION = "1.0.0"
CREATE_ORDER_ROUTE = "/api/create-order"

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}
CORS_PREFLIGHT_HEADERS = {
    **CORS_HEADERS,
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "POST,OPTIONS",
}

logger = structlog.get_logger(component="server")


def configure_logging(level: str = "INFO"):
    """stdlib logging for storage/notifier, structlog JSON for the rest."""
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def resolve_base_url(
    config: StoreConfig,
    headers: Mapping[str, str],
    fallback: Optional[str] = None,
) -> str:
    """
    Public URL of this deployment, used for redirect and webhook URLs.

    A configured URL wins; otherwise it is rebuilt from forwarded headers,
    then from `fallback` (the URL the request arrived on).
    """
    if config.public_base_url:
        return config.public_base_url.rstrip("/")
    host = headers.get("x-forwarded-host") or headers.get("host")
    if host:
        protocol = headers.get("x-forwarded-proto") or "https"
        return f"{protocol}://{host}"
    if fallback:
        return fallback.rstrip("/")
    raise ConfigurationError("Cannot determine public URL; set PUBLIC_BASE_URL.")


# ============================================================================
# ROUTES
# ============================================================================

router = APIRouter()


@router.options(CREATE_ORDER_ROUTE)
@router.options(WEBHOOK_ROUTE)
async def preflight():
    """CORS preflight."""
    return Response(status_code=204, headers=CORS_PREFLIGHT_HEADERS)


@router.post(CREATE_ORDER_ROUTE)
async def create_order(request: Request):
    """
    Create an order from the posted cart and return its checkout URL.

    400 on an empty or malformed cart, 500 on storage/gateway/config failure.
    """
    lifecycle: OrderLifecycle = request.app.state.lifecycle
    config: StoreConfig = request.app.state.config

    try:
        body = await request.body()
        base_url = resolve_base_url(config, request.headers, fallback=str(request.base_url))
        result = await lifecycle.create_order(body, base_url)
    except ValidationError as e:
        logger.info("create_order_rejected", reason=e.message)
        return JSONResponse({"message": e.message}, status_code=400, headers=CORS_HEADERS)
    except StorefrontError as e:
        logger.error("create_order_failed", error=e.message, error_type=type(e).__name__, exc_info=True)
        return JSONResponse({"message": e.message}, status_code=500, headers=CORS_HEADERS)
    except Exception as e:
        logger.error("create_order_error", error=str(e), exc_info=True)
        return JSONResponse({"message": "Server error."}, status_code=500, headers=CORS_HEADERS)

    return JSONResponse(result.model_dump(), status_code=200, headers=CORS_HEADERS)


@router.post(WEBHOOK_ROUTE)
async def payment_webhook(request: Request):
    """
    Mercado Pago payment notification.

    200 for success and every benign no-op so the gateway stops
    redelivering; 401 on a bad signature; 500 asks for redelivery.
    """
    lifecycle: OrderLifecycle = request.app.state.lifecycle

    try:
        body = await request.body()
        outcome = await lifecycle.confirm_payment(body, request.headers.get(SIGNATURE_HEADER))
    except AuthError as e:
        return PlainTextResponse(e.message, status_code=401)
    except Exception as e:
        logger.error("webhook_error", error=str(e), error_type=type(e).__name__, exc_info=True)
        return PlainTextResponse("Webhook error.", status_code=500)

    return PlainTextResponse(outcome.value, status_code=200)


@router.get("/health")
async def health_check():
    return {"status": "healthy", "version": VERSION}


# ============================================================================
# APP FACTORY
# ============================================================================

def create_app(
    config: Optional[StoreConfig] = None,
    store: Optional[GitHubFileStore] = None,
    gateway: Optional[MercadoPagoClient] = None,
    notifier: Optional[EmailNotifier] = None,
) -> FastAPI:
    """
    Build the application with explicit collaborators.

    Anything not passed in is built from `config`.
    """
    config = config or StoreConfig.from_env()
    configure_logging(config.log_level)

    store = store or GitHubFileStore(config)
    gateway = gateway or MercadoPagoClient(config)
    notifier = notifier or EmailNotifier(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("storefront_starting", version=VERSION)
        yield
        for client in (store, gateway):
            close = getattr(client, "close", None)
            if close is not None:
                await close()
        logger.info("storefront_stopped")

    app = FastAPI(
        title="Nude Storefront Orders",
        description="Order creation and Mercado Pago payment confirmation",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.lifecycle = OrderLifecycle(config, store, gateway, notifier)
    app.include_router(router)
    return app


def main():
    config = StoreConfig.from_env()
    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
