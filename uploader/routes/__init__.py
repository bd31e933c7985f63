"""API routes package."""

from uploader.routes.file_routes import router as file_router
from uploader.routes.upload_routes import router as upload_router

__all__ = ["file_router", "upload_router"]
