import os

from .config import Config

SECRET_KEY = Config.SECRET_KEY

STORE_BACKEND = Config.STORE_BACKEND
LOCAL_STORE_DIR = Config.LOCAL_STORE_DIR

DB_CONFIG = {
    "host": Config.DB_HOST,
    "port": Config.DB_PORT,
    "user": Config.DB_USER,
    "password": Config.DB_PASSWORD,
    "database": Config.DB_NAME,
}

GEMINI_API_KEY = Config.GEMINI_API_KEY
GEMINI_MODEL = Config.GEMINI_MODEL
MATCHER_GALLERY_WINDOW = Config.MATCHER_GALLERY_WINDOW
MATCHER_MOST_RECENT_FIRST = Config.MATCHER_MOST_RECENT_FIRST
MATCHER_MIN_CONFIDENCE = Config.MATCHER_MIN_CONFIDENCE
MATCHER_TIMEOUT = Config.MATCHER_TIMEOUT

SCANNER_MAX_DIM = Config.SCANNER_MAX_DIM
SCANNER_JPEG_QUALITY = Config.SCANNER_JPEG_QUALITY
CAMERA_FRONT_INDEX = Config.CAMERA_FRONT_INDEX
CAMERA_REAR_INDEX = Config.CAMERA_REAR_INDEX

DEFAULT_FEE_DUE_DATE = Config.DEFAULT_FEE_DUE_DATE

DEBUG = bool(int(os.environ.get("DEBUG", "1")))

# If enabled, the documents table is created on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
