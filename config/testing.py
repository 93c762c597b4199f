import os

SECRET_KEY = "test-secret"

STORE_BACKEND = "local"
LOCAL_STORE_DIR = os.getenv("LOCAL_STORE_DIR", "instance/test-data")

DB_CONFIG = {
    "host": "",
    "port": 3306,
    "user": "",
    "password": "",
    "database": "eduface_test",
}

GEMINI_API_KEY = ""
GEMINI_MODEL = "gemini-3-flash-preview"
MATCHER_GALLERY_WINDOW = 40
MATCHER_MOST_RECENT_FIRST = False
MATCHER_MIN_CONFIDENCE = 0.0
MATCHER_TIMEOUT = 5.0

SCANNER_MAX_DIM = 400
SCANNER_JPEG_QUALITY = 40
CAMERA_FRONT_INDEX = 0
CAMERA_REAR_INDEX = 1

DEFAULT_FEE_DUE_DATE = "2024-12-31"

DEBUG = False
TESTING = True

AUTO_INIT_DB = False
