import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException

import database
from config import settings
from errors import ApiError, error_kind_for_status
from logging_config import setup_logging
from responses import fail, ok
from routers import comments, dashboard, healthcheck, likes, playlists, subscriptions, tweets, users, videos

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL)
    db = database.connect(settings.MONGODB_URL, settings.DATABASE_NAME)
    database.ensure_indexes(db)
    logger.info("%s started", settings.APP_NAME)
    yield
    database.close()


app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Uploaded assets are served back under /static
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
os.makedirs(settings.TEMP_DIR, exist_ok=True)
app.mount(settings.STATIC_URL_PREFIX, StaticFiles(directory=settings.UPLOAD_DIR), name="static")


# -------------------- Error handlers --------------------
@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return fail(exc.status_code, exc.error_kind, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return fail(400, "bad_request", message)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid data") if errors else "Invalid data"
    return fail(400, "bad_request", message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return fail(exc.status_code, error_kind_for_status(exc.status_code), str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(DuplicateKeyError)
async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
    return fail(409, "conflict", "Resource already exists")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return fail(500, "internal", "Something went wrong")


# -------------------- Routers --------------------
app.include_router(users.router, prefix=f"{API_PREFIX}/users", tags=["users"])
app.include_router(videos.router, prefix=f"{API_PREFIX}/videos", tags=["videos"])
app.include_router(comments.router, prefix=f"{API_PREFIX}/comments", tags=["comments"])
app.include_router(tweets.router, prefix=f"{API_PREFIX}/tweets", tags=["tweets"])
app.include_router(playlists.router, prefix=f"{API_PREFIX}/playlists", tags=["playlists"])
app.include_router(likes.router, prefix=f"{API_PREFIX}/likes", tags=["likes"])
app.include_router(subscriptions.router, prefix=f"{API_PREFIX}/subscriptions", tags=["subscriptions"])
app.include_router(dashboard.router, prefix=f"{API_PREFIX}/dashboard", tags=["dashboard"])
app.include_router(healthcheck.router, prefix=f"{API_PREFIX}/healthcheck", tags=["healthcheck"])


@app.get("/")
def read_root():
    return ok({"app": settings.APP_NAME, "api": API_PREFIX}, f"{settings.APP_NAME} is running")


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
