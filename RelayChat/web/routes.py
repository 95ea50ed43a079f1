"""
HTTP front of the relay: file uploads, the chat page and static content.
"""

import logging
import os
from typing import Optional

from fastapi import FastAPI, File, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from RelayChat import __version__
from RelayChat.config import config
from RelayChat.core.exceptions import FileTooLargeError, UploadError
from RelayChat.core.server.relay import EventRelay
from RelayChat.web.storage import save_upload

logger = logging.getLogger(__name__)


def create_app(
    relay: Optional[EventRelay] = None,
    upload_dir: Optional[str] = None,
    public_dir: Optional[str] = None,
    max_file_size: Optional[int] = None
) -> FastAPI:
    """
    Build the HTTP application.

    Args:
        relay: Relay core, used for the status endpoint
        upload_dir: Where uploads are stored (config.UPLOAD_DIR)
        public_dir: Directory served as static content (config.PUBLIC_DIR)
        max_file_size: Upload limit in bytes (config.MAX_FILE_SIZE)

    Returns:
        FastAPI application
    """
    upload_dir = upload_dir or config.UPLOAD_DIR
    public_dir = public_dir or config.PUBLIC_DIR
    max_file_size = max_file_size or config.MAX_FILE_SIZE

    os.makedirs(upload_dir, exist_ok=True)
    os.makedirs(public_dir, exist_ok=True)

    app = FastAPI(title="RelayChat", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post("/upload")
    async def upload(file: Optional[UploadFile] = File(default=None)):
        if file is None or not file.filename:
            return JSONResponse(status_code=400, content={"error": "No file uploaded"})

        try:
            file_ref = await save_upload(file, upload_dir, max_file_size)
        except FileTooLargeError as e:
            logger.warning("Rejected upload %s: %s", file.filename, e)
            return JSONResponse(status_code=413, content={"error": e.message})
        except UploadError as e:
            logger.error("Upload of %s failed: %s", file.filename, e)
            return JSONResponse(status_code=500, content={"error": e.message})
        finally:
            await file.close()

        return file_ref.model_dump(by_alias=True)

    @app.get("/api/status")
    async def status():
        data = {"version": __version__}
        if relay is not None:
            data["connections"] = relay.sessions.user_count
            data["logged_in"] = len(relay.identities)
            data["history"] = len(relay.history)
        return data

    @app.get("/")
    async def read_root():
        index = os.path.join(public_dir, "index.html")
        if not os.path.isfile(index):
            return JSONResponse(status_code=404, content={"error": "index.html not found"})
        return FileResponse(index)

    # Mounted last so the routes above take precedence
    app.mount("/", StaticFiles(directory=public_dir, check_dir=False), name="public")

    return app


__all__ = ['create_app']
