"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

REGISTRY_PARTITION = "registry"

DEFAULT_ACADEMIC_YEAR = "2024-25"
DEFAULT_FEE_DUE_DATE = "2024-12-31"

DEFAULT_GALLERY_WINDOW = 40
DEFAULT_MATCHER_MODEL = "gemini-3-flash-preview"
DEFAULT_MATCHER_TIMEOUT = 30.0

SCAN_MAX_DIM = 400
SCAN_JPEG_QUALITY = 40
REFERENCE_MAX_DIM = 640
REFERENCE_JPEG_QUALITY = 85

SCAN_MATCH_DWELL_SECONDS = 0.8
SCAN_RETRY_DELAY_SECONDS = 0.3
SCAN_HISTORY_LIMIT = 5

DEFAULTER_BALANCE_RATIO = Decimal("0.5")
RECEIPT_PREFIX = "REC-"
STUDENT_ID_PREFIX = "STU-"
