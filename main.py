import inspect
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from openai import AsyncOpenAI

from dal.kv_dal import KeyValueDAL
from routes.chat_route import router as chat_router
from routes.session_route import router as session_router
from services.gateway.gateway_client import GatewayClient, build_openai_client
from services.image_normalizer import ImageNormalizer
from services.message_flow import ChatInitializationError, MessageFlowController
from services.session_store import SessionStore
from utils.database_init import AsyncDatabaseInitializer
from utils.settings import Settings

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - settings (from the environment unless `create_app` was given some)
      - the SQLite history database at <DATABASE_DIR>/chat.db
      - the OpenAI-compatible async client used as the gateway transport
      - the session store and the message flow controller
    and attach them to `app.state`.
    """
    settings: Settings = app.state.settings or Settings.from_env()
    app.state.settings = settings
    logging.basicConfig(level=settings.log_level)

    db_initializer = AsyncDatabaseInitializer(settings.database_dir)
    await db_initializer.ensure_database()
    app.state.db_initializer = db_initializer

    if app.state.openai_client is None:
        try:
            app.state.openai_client = build_openai_client(settings)
        except Exception as exc:
            raise RuntimeError("Failed to initialize OpenAI Async client") from exc

    gateway = GatewayClient(app.state.openai_client, settings)
    store = SessionStore(KeyValueDAL(db_initializer))
    flow = MessageFlowController(store, gateway)
    app.state.session_store = store
    app.state.message_flow = flow
    app.state.image_normalizer = ImageNormalizer()

    try:
        await flow.initialize()
    except ChatInitializationError as exc:
        # Requests retry initialization and report 503 until it succeeds.
        logging.error("Chat initialization failed at startup: %s", exc)

    try:
        yield
    finally:
        # Gracefully close the OpenAI client if it exposes a close/aclose method.
        client = getattr(app.state, "openai_client", None)
        if client is not None:
            aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
            if aclose is not None:
                try:
                    if inspect.iscoroutinefunction(aclose):
                        await aclose()
                    else:
                        result = aclose()
                        if inspect.isawaitable(result):
                            await result
                except Exception as exc:
                    logging.warning("Error closing OpenAI client: %s", exc)


def create_app(
    settings: Optional[Settings] = None,
    openai_client: Optional[AsyncOpenAI] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    Args:
        settings: Optional settings; read from the environment at startup when omitted.
        openai_client: Optional pre-built client; built from settings when omitted.
    """
    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.state.openai_client = openai_client

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that verifies DB initializer and gateway client presence.
        """
        db_initializer = getattr(request.app.state, "db_initializer", None)
        has_gateway = getattr(request.app.state, "openai_client", None) is not None
        return {
            "ok": True,
            "db_initialized": bool(db_initializer and db_initializer.initialized),
            "gateway_available": has_gateway,
        }

    # Register application routers
    app.include_router(chat_router)
    app.include_router(session_router)

    return app


app = create_app()
