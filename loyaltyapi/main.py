import logging
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from mangum import Mangum
from starlette.middleware.cors import CORSMiddleware

load_dotenv("loyaltyapi/.env")

from loyaltyapi import containers  # noqa: E402
from loyaltyapi.config import settings  # noqa: E402
from loyaltyapi.core.exception_handlers import register_exception_handlers  # noqa: E402
from loyaltyapi.logging_config import setup_logging  # noqa: E402
from loyaltyapi.routers import (  # noqa: E402
    admin_router,
    auth_router,
    claim_code_router,
    health_router,
    history_router,
    livestream_router,
    point_router,
    raffle_router,
    task_router,
    tip_router,
    wallet_router,
)

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(title=settings.APP_NAME)
    app.container = containers.Container()  # type: ignore

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(f"Request: {request.method} {request.url}")
        response = await call_next(request)
        logger.info(f"Response: {response.status_code}")
        return response

    register_exception_handlers(app)

    for module in (
        health_router,
        auth_router,
        point_router,
        task_router,
        claim_code_router,
        tip_router,
        raffle_router,
        history_router,
        wallet_router,
        admin_router,
        livestream_router,
    ):
        app.include_router(module.router)

    return app


app = create_app()

handler = Mangum(app)
