"""
Account Link API Application Factory
"""

from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from .. import __version__
from ..errors import AccountLinkError, InvalidTokenError, OAuthError, StateMismatchError
from ..logging_config import log_action, setup_logging
from .accounts import router as accounts_router
from .auth import router as auth_router
from .system import LinkSystem, get_system, require_token
from .transfer import router as transfer_router


logger = logging.getLogger("accountlink.api")


def create_app(system: Optional[LinkSystem] = None) -> FastAPI:
    """Create and configure the FastAPI application"""
    system = system or LinkSystem()
    setup_logging(system.config.log_level, system.config.log_format)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.system.close()

    app = FastAPI(
        title="Account Link API",
        description="Accounts with bearer-token access and OAuth identity linking",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.system = system

    app.include_router(auth_router, tags=["Auth"])
    app.include_router(accounts_router, prefix="/account", tags=["Accounts"])
    app.include_router(transfer_router, prefix="/transfer", tags=["Transfer"])

    @app.exception_handler(InvalidTokenError)
    async def invalid_token_handler(request: Request, exc: InvalidTokenError):
        return JSONResponse(status_code=403, content={"Error": "invalid token"})

    @app.exception_handler(StateMismatchError)
    async def state_mismatch_handler(request: Request, exc: StateMismatchError):
        return PlainTextResponse(str(exc), status_code=400)

    @app.exception_handler(OAuthError)
    async def oauth_error_handler(request: Request, exc: OAuthError):
        log_action(logger, "error", f"OAuth callback failed: {exc}", action="auth_callback",
                   resource=request.url.path)
        return PlainTextResponse(str(exc), status_code=500)

    @app.exception_handler(AccountLinkError)
    async def service_error_handler(request: Request, exc: AccountLinkError):
        logger.error(f"Request failed: {exc}", exc_info=exc)
        return PlainTextResponse(str(exc), status_code=500)

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "accountlink",
            "version": __version__
        }

    @app.get("/")
    async def get_api_info():
        """Get API information"""
        return {
            "name": "Account Link API",
            "version": __version__,
            "endpoints": {
                "docs": "/docs",
                "health": "/health",
                "login": "/login",
                "callback": "/auth/callback",
                "accounts": "/account",
                "transfer": "/transfer",
            }
        }

    return app


__all__ = ["create_app", "LinkSystem", "get_system", "require_token"]
