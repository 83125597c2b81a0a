"""Application wiring for the resale inventory service.

Importing the package builds the FastAPI app: tables are created and
migrated, middleware and routers are attached, and the error handlers that
turn service exceptions into ``{"error": ...}`` responses are registered.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.errors import (
    InventoryError,
    http_exception_handler,
    inventory_error_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from .db.migrate import run_migrations
from .db.session import Base, engine
from .middlewares import RequestIdMiddleware

# Registers the table with Base.metadata before create_all.
from .models import inventory as _inventory  # noqa: F401
from .services.uploads import UPLOADS_URL_PREFIX

app = FastAPI(title=settings.APP_NAME)

# ---------- DB init/migrations ----------
Base.metadata.create_all(bind=engine)
run_migrations(engine)

# ---------- Middleware ----------
app.add_middleware(RequestIdMiddleware)
if settings.allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# ---------- Uploaded images ----------
app.mount(UPLOADS_URL_PREFIX, StaticFiles(directory=str(settings.UPLOADS_DIR)), name="uploads")

# ---------- Routers ----------
from .routers import api_inventory as api_inventory_router  # noqa: E402

app.include_router(api_inventory_router.router)

from .routers import api_upload as api_upload_router  # noqa: E402

app.include_router(api_upload_router.router)

from .routers import api_platforms as api_platforms_router  # noqa: E402

app.include_router(api_platforms_router.router)

# ---------- Exception handling ----------
app.add_exception_handler(InventoryError, inventory_error_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


@app.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}


__all__ = ["app"]
