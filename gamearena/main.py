import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from gamearena.api.endpoints import admin as admin_endpoints
from gamearena.api.endpoints import auth as auth_endpoints
from gamearena.api.endpoints import leaderboard as leaderboard_endpoints
from gamearena.api.endpoints import tournaments as tournament_endpoints
from gamearena.api.endpoints import users as user_endpoints
from gamearena.core.config import Settings, settings as default_settings
from gamearena.core.errors import LedgerError
from gamearena.services.ledger_store import LedgerStore
from gamearena.services.user_service import UserService

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Builds an application around a fresh in-memory ledger."""
    settings = settings or default_settings
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="GameArena Tournament API")
    app.state.settings = settings
    app.state.store = LedgerStore()

    admin = UserService(app.state.store).bootstrap_admin(settings)
    if admin:
        logger.info("Bootstrap admin available as %s", admin.email)

    app.include_router(auth_endpoints.router, prefix="/api/auth", tags=["Authentication"])
    app.include_router(user_endpoints.router, prefix="/api/users", tags=["Users"])
    app.include_router(tournament_endpoints.router, prefix="/api/tournaments", tags=["Tournaments"])
    app.include_router(leaderboard_endpoints.router, prefix="/api/leaderboard", tags=["Leaderboard"])
    app.include_router(admin_endpoints.router, prefix="/api/admin", tags=["Admin"])

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": jsonable_encoder(exc.errors())})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Internal server error"})

    @app.get("/")
    async def root():
        return {"message": "GameArena Tournament API"}

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("gamearena.main:app", host="0.0.0.0", port=8000, reload=True)
