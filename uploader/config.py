"""Configuration settings for the upload server."""

import os

from common.constants import (
    DEFAULT_CHUNK_STORAGE_PATH,
    DEFAULT_DATABASE_PATH,
    DEFAULT_SERVER_PORT,
    DEFAULT_UPLOAD_DIR,
)


DATABASE_PATH = os.environ.get("UPLOAD_DATABASE_PATH", DEFAULT_DATABASE_PATH)

UPLOAD_DIR = os.environ.get("UPLOAD_DIR", DEFAULT_UPLOAD_DIR)

CHUNK_DIR = os.environ.get("UPLOAD_CHUNK_DIR", DEFAULT_CHUNK_STORAGE_PATH)

PUBLIC_URL_PREFIX = os.environ.get("UPLOAD_PUBLIC_URL_PREFIX", "/uploads").rstrip("/")

SERVER_HOST = os.environ.get("UPLOAD_HOST", "0.0.0.0")

SERVER_PORT = int(os.environ.get("UPLOAD_PORT", str(DEFAULT_SERVER_PORT)))

# Limits for the plain single/multiple upload endpoints; chunks are not capped.
MAX_FILE_SIZE_BYTES = int(os.environ.get("UPLOAD_MAX_FILE_SIZE", str(10 * 1024 * 1024)))

MAX_FILES_PER_REQUEST = int(os.environ.get("UPLOAD_MAX_FILES", "10"))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("UPLOAD_CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

DEFAULT_PAGE_SIZE = 20

MAX_PAGE_SIZE = 100
