import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from moviestream.billing import PaymentProcessor
from moviestream.config import Settings, get_settings
from moviestream.db import connect_db, disconnect_db
from moviestream.errors import register_error_handlers
from moviestream.routers import auth, genres, movies, payments, users

logger = logging.getLogger(__name__)


def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(settings: Settings = None, processor=None, **db_options) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        connect_db(settings, **db_options)
        if processor is not None:
            app.state.processor = processor
        elif settings.stripe_secret_key:
            app.state.processor = PaymentProcessor(settings.stripe_secret_key, settings.stripe_webhook_secret)
        else:
            logger.warning("STRIPE_SECRET_KEY not set, payment routes are disabled")
            app.state.processor = None
        try:
            yield
        finally:
            disconnect_db()

    app = FastAPI(title="Movie Streaming API", lifespan=lifespan)
    app.state.settings = settings
    app.state.processor = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    app.include_router(auth.router)
    app.include_router(movies.router)
    app.include_router(genres.router)
    app.include_router(users.router)
    app.include_router(payments.router)

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    return app


def run():
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=4002)


if __name__ == "__main__":
    run()
