"""FastAPI application configuration and router wiring."""
from __future__ import annotations

import sys

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .database import SessionLocal, init_db
from .models.dates import now_utc, to_iso
from .models.domain import BattleStore
from .models.errors import GameError
from .models.game import APP_VERSION, GameData
from .routes import battles, monsters, players, world

logger.remove()
logger.add(sys.stderr, level=settings.log_level.upper())

app = FastAPI(title="Monster Collection API", version=APP_VERSION)

game_data = GameData()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.data = game_data
app.state.battles = BattleStore()
app.state.maps = {}

app.include_router(players.router)
app.include_router(monsters.router)
app.include_router(world.router)
app.include_router(battles.router)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@app.exception_handler(GameError)
async def game_error_handler(request: Request, exc: GameError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("{} {} failed: {}", request.method, request.url.path, exc.message)
    else:
        logger.warning("{} {} rejected ({}): {}", request.method, request.url.path, exc.status_code, exc.message)
    return error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = ", ".join(
        f"{'.'.join(str(part) for part in error['loc'][1:]) or 'body'}: {error['msg']}" for error in exc.errors()
    )
    logger.warning("{} {} invalid payload: {}", request.method, request.url.path, problems)
    return error_response(400, f"リクエストが不正です ({problems})")


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error("Unhandled error on {} {}", request.method, request.url.path)
    return error_response(500, "Internal server error")


@app.on_event("startup")
def startup() -> None:
    """Create tables and seed master data."""

    init_db()
    with SessionLocal() as db:
        game_data.seed_species(db)
    logger.info("Monster Collection API {} ready", APP_VERSION)


@app.get("/health")
def health():
    """Report service and database status."""

    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Health check failed: {}", exc)
        return JSONResponse(
            status_code=500,
            content={"status": "unhealthy", "database": "error", "timestamp": to_iso(now_utc())},
        )
    return {"status": "healthy", "database": "connected", "timestamp": to_iso(now_utc())}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
