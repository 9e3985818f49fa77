import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from adapters.entry.http.admin_router import router as admin_router
from adapters.entry.http.map_tiles_router import router as map_tiles_router
from adapters.entry.http.spots_router import router as spots_router
from config.settings import settings
from core.domain.errors import InvalidAuthTokenError
from workers.app_supervisor import AppSupervisor


def _setup_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


supervisor = AppSupervisor()


@asynccontextmanager
async def lifespan(app: FastAPI):
    _setup_logging()
    logging.getLogger(__name__).info("Starting %s (lifespan startup)...", settings.APP_NAME)

    await supervisor.start()
    app.state.map_tile_uc = supervisor.map_tile_uc
    app.state.fetch_popular_uc = supervisor.fetch_popular_uc
    app.state.rebuild_leaderboard_uc = supervisor.rebuild_leaderboard_uc
    app.state.token_verifier = supervisor.token_verifier

    try:
        yield
    finally:
        logging.getLogger(__name__).info("Shutting down %s (lifespan shutdown)...", settings.APP_NAME)
        await supervisor.stop()


app = FastAPI(title=settings.APP_NAME, version="0.1.0", lifespan=lifespan)

app.include_router(map_tiles_router)
app.include_router(spots_router)
app.include_router(admin_router)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    loc = ".".join(str(p) for p in first.get("loc", ()) if p not in ("query", "body", "path"))
    msg = first.get("msg", "Invalid request")
    return JSONResponse(status_code=400, content={"message": f"{loc}: {msg}" if loc else msg})


@app.exception_handler(InvalidAuthTokenError)
async def invalid_token_handler(request: Request, exc: InvalidAuthTokenError):
    return JSONResponse(status_code=401, content={"message": exc.message})


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}
