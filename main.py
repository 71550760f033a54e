"""Image carousel API entry point.

Serve with `uvicorn main:create_app --factory` (settings come from the
environment, see `utils.config.Settings`) or run `python main.py`.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from dal.image_dal import ImageDAL
from routes.image_route import router as image_router
from services.file_store import FileStore, URL_PREFIX
from utils.config import Settings
from utils.database_init import AsyncDatabaseInitializer

BASE_DIR = Path(__file__).resolve().parent
PUBLIC_DIR = BASE_DIR / "public"

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the SQLite database (kept across restarts, at <database_dir>/app.db)
      - the upload directory, swept of files no record points to
    and attach them to `app.state`.
    """
    settings: Settings = app.state.settings

    db_initializer = AsyncDatabaseInitializer(settings.database_dir)
    await db_initializer.ensure_database()
    app.state.db_initializer = db_initializer

    file_store: FileStore = app.state.file_store
    records = await ImageDAL(db_initializer).list_images()
    await file_store.sweep_orphans(record.filename for record in records)

    LOGGER.info(
        "Image carousel ready: %d images, database at %s", len(records), db_initializer.db_path
    )
    yield


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    Args:
        settings: Explicit configuration; read from the environment when omitted.
    """
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.state.file_store = FileStore(settings.upload_dir)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Uploaded files are served back at the URL stored in each record.
    app.mount(URL_PREFIX, StaticFiles(directory=settings.upload_dir), name="uploads")

    # Serve static assets from the public directory, if it exists.
    if PUBLIC_DIR.exists():
        app.mount("/public", StaticFiles(directory=PUBLIC_DIR), name="public")

    @app.get("/", include_in_schema=False)
    async def serve_index():
        """
        Serve the frontend index page from the public directory.
        """
        index_path = PUBLIC_DIR / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Frontend not found")
        return FileResponse(index_path)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that verifies the database and upload directory.
        """
        has_db = hasattr(request.app.state, "db_initializer")
        uploads_ready = request.app.state.file_store.upload_dir.is_dir()
        return {"ok": has_db and uploads_ready, "db_initialized": has_db, "uploads_ready": uploads_ready}

    # Register application routers
    app.include_router(image_router)

    return app


if __name__ == "__main__":
    import uvicorn

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
