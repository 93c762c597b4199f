import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or "dev-secret-key"

    # "local" = embedded JSON files, "mysql" = remote document store
    STORE_BACKEND = os.environ.get("STORE_BACKEND", "local").lower()
    LOCAL_STORE_DIR = os.environ.get("LOCAL_STORE_DIR", "instance/data")

    DB_USER = os.environ.get("DB_USER", "")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "eduface")

    # External recognition / assistant provider
    GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY", "")
    GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-3-flash-preview")
    MATCHER_GALLERY_WINDOW = int(os.environ.get("MATCHER_GALLERY_WINDOW", "40"))
    MATCHER_MOST_RECENT_FIRST = bool(int(os.environ.get("MATCHER_MOST_RECENT_FIRST", "0")))
    MATCHER_MIN_CONFIDENCE = float(os.environ.get("MATCHER_MIN_CONFIDENCE", "0"))
    MATCHER_TIMEOUT = float(os.environ.get("MATCHER_TIMEOUT", "30"))

    SCANNER_MAX_DIM = int(os.environ.get("SCANNER_MAX_DIM", "400"))
    SCANNER_JPEG_QUALITY = int(os.environ.get("SCANNER_JPEG_QUALITY", "40"))
    CAMERA_FRONT_INDEX = int(os.environ.get("CAMERA_FRONT_INDEX", "0"))
    CAMERA_REAR_INDEX = int(os.environ.get("CAMERA_REAR_INDEX", "1"))

    DEFAULT_FEE_DUE_DATE = os.environ.get("DEFAULT_FEE_DUE_DATE", "2024-12-31")

    AUTO_INIT_DB = bool(int(os.environ.get("AUTO_INIT_DB", "0")))
