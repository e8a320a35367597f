import time
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.datastructures import State

from app.api import auth, battle, pokemon, tournament
from app.core.cache import TTLCache
from app.core.config import settings
from app.core.db import engine, init_db
from app.core.errors import AppError
from app.core.locks import KeyedLock
from app.core.rate_limit import RateLimiter
from app.core.security import get_client_ip
from app.utils.exception_handlers import (
    app_error_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from app.utils.misc import get_utc_iso_now


def init_state(state: State) -> None:
    """Create the process-wide stores the request dependencies read from."""
    state.cache = TTLCache(default_ttl=settings.cache_ttl_seconds)
    state.rate_limiter = RateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    state.tournament_locks = KeyedLock()


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None]:
    init_state(app.state)
    await init_db()

    yield

    app.state.cache.clear()
    app.state.rate_limiter.reset()
    await engine.dispose()


app = FastAPI(
    title="Pokemon Battle Simulator API",
    version="1.0.0",
    lifespan=app_lifespan,
    servers=[{"url": "http://localhost:3000", "description": "Local server"}],
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def access_log(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000

    path = request.url.path
    if request.url.query:
        path = f"{path}?{request.url.query}"
    logger.bind(access=True).info(
        f'{get_client_ip(request) or "-"} "{request.method} {path}" '
        f"{response.status_code} {elapsed_ms:.1f}ms"
    )
    return response


for module in (auth, pokemon, battle, tournament):
    app.include_router(module.router, prefix="/api")

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)


@app.get("/")
async def index() -> dict[str, object]:
    return {
        "message": "Pokemon Battle Simulator API",
        "version": app.version,
        "endpoints": {
            "health": "/health",
            "auth": "/api/auth",
            "pokemon": "/api/pokemon",
            "battles": "/api/battles",
            "tournaments": "/api/tournaments",
        },
    }


@app.get("/health")
async def healthz() -> dict[str, str]:
    return {"status": "ok", "timestamp": get_utc_iso_now()}
