from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from changeloghub import __version__
from changeloghub.core.app_config import get_config
from changeloghub.core.services import build_services
from changeloghub.exceptions import AppBaseError
from changeloghub.logger import get_logger
from changeloghub.routers import cron_api as cron_router
from changeloghub.routers import items_api as items_router
from changeloghub.routers import packages_api as packages_router
from changeloghub.routers import webhooks_api as webhooks_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan events."""
    # Tests install their own services before starting the app
    owned = getattr(app.state, "services", None) is None
    if owned:
        app.state.services = build_services(get_config())
    try:
        yield
    finally:
        if owned:
            await app.state.services.aclose()
            app.state.services = None


app = FastAPI(title="changeloghub", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.exception_handler(AppBaseError)
async def app_error_handler(request: Request, exc: AppBaseError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, error=str(exc))
    else:
        logger.info("Request rejected", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Register routers; the items router holds catch-all routes and goes last
app.include_router(packages_router.router)
app.include_router(webhooks_router.router)
app.include_router(cron_router.router)
app.include_router(items_router.router)


def run_server(port: int | None = None, host: str | None = None) -> None:
    """Run the changeloghub server.

    Args:
        port: Optional port number overriding the config.
        host: Optional bind address overriding the config.
    """
    config = get_config()
    if port is not None and port != config.server.port:
        logger.info("Port override detected", old_port=config.server.port, new_port=port)
        config.server.port = port
    if host is not None:
        config.server.host = host

    uvicorn.run(app, host=config.server.host, port=config.server.port)


def main() -> None:
    """Main entry point with CLI argument parsing."""
    import argparse

    parser = argparse.ArgumentParser(
        description="changeloghub - release aggregation service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  changeloghub                       # Start with the configured host and port
  changeloghub --port 9000           # Start on port 9000
  changeloghub --host 0.0.0.0        # Listen on every interface
        """,
    )

    parser.add_argument(
        "--port",
        type=int,
        metavar="PORT",
        help="Port number to run the server on",
    )

    parser.add_argument(
        "--host",
        metavar="HOST",
        help="Address to bind the server to",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"changeloghub {__version__}",
    )

    args = parser.parse_args()

    run_server(port=args.port, host=args.host)


if __name__ == "__main__":
    main()
