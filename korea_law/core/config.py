"""
korea-law Configuration
Centralized configuration loaded from the environment (.env supported).
"""
import os
from pathlib import Path

from dotenv import load_dotenv

# Load from .env file with UTF-8 encoding
env_path = Path(__file__).parent.parent.parent / '.env'
load_dotenv(dotenv_path=env_path, encoding='utf-8')

# =============================================================================
# Database Configuration
# =============================================================================
DATA_DIR = Path(os.getenv("KOREA_LAW_DATA_DIR", str(Path(__file__).parent.parent.parent / "data")))
DATABASE_URL = os.getenv("KOREA_LAW_DATABASE_URL", f"sqlite:///{DATA_DIR / 'korea-law.db'}")

# =============================================================================
# law.go.kr DRF Open API Configuration
# =============================================================================
LAW_API_BASE_URL = os.getenv("KOREA_LAW_API_BASE_URL", "http://www.law.go.kr/DRF")
LAW_API_KEY = os.getenv("KOREA_LAW_API_KEY", "")
LAW_API_TIMEOUT = int(os.getenv("KOREA_LAW_API_TIMEOUT", "30"))
LAW_API_MAX_RETRIES = int(os.getenv("KOREA_LAW_API_MAX_RETRIES", "3"))

# Retry configuration
BACKOFF_BASE_DELAY = float(os.getenv("BACKOFF_BASE_DELAY", "1"))  # 1 second
BACKOFF_MULTIPLIER = int(os.getenv("BACKOFF_MULTIPLIER", "2"))
BACKOFF_MAX_DELAY = float(os.getenv("BACKOFF_MAX_DELAY", "60"))  # 60 seconds

# HTTP statuses worth another attempt
RETRYABLE_STATUS_CODES = (408, 429, 500, 502, 503, 504)

# =============================================================================
# Sync Configuration
# =============================================================================
SYNC_API_DELAY = float(os.getenv("SYNC_API_DELAY", "0.5"))  # seconds between statutes
SYNC_SCAN_DAYS = int(os.getenv("SYNC_SCAN_DAYS", "7"))
SYNC_PAGE_SIZE = int(os.getenv("SYNC_PAGE_SIZE", "100"))
SYNC_MAX_PAGES = int(os.getenv("SYNC_MAX_PAGES", "60"))
SYNC_PROGRESS_EVERY = int(os.getenv("SYNC_PROGRESS_EVERY", "50"))

DEFAULT_PRIORITY_LAWS = [
    "근로기준법",
    "민법",
    "형법",
    "상법",
    "노동조합및노동관계조정법",
    "근로자퇴직급여보장법",
    "최저임금법",
    "산업안전보건법",
    "남녀고용평등과일가정양립지원에관한법률",
    "소득세법",
    "법인세법",
    "부가가치세법",
    "국민건강보험법",
    "국민연금법",
    "고용보험법",
    "산업재해보상보험법",
]

_priority_env = os.getenv("SYNC_PRIORITY_LAWS", "")
PRIORITY_LAWS = [name.strip() for name in _priority_env.split(",") if name.strip()] or DEFAULT_PRIORITY_LAWS

# Precedent index keywords: labor, civil, criminal, corporate, tax
PRECEDENT_KEYWORDS = [
    "해고", "부당해고", "정리해고", "권고사직",
    "임금", "퇴직금", "연차휴가", "근로시간",
    "노동조합", "단체교섭", "파업",
    "손해배상", "채무불이행", "불법행위",
    "계약해제", "계약해지", "이행청구",
    "소유권", "저당권", "임대차",
    "사기", "횡령", "배임",
    "명예훼손", "모욕",
    "주주총회", "이사회", "대표이사",
    "합병", "분할", "회생",
    "부가가치세", "법인세", "소득세",
    "과세처분", "조세포탈",
]
PRECEDENT_SEARCH_LIMIT = int(os.getenv("PRECEDENT_SEARCH_LIMIT", "50"))

# =============================================================================
# Logging Configuration
# =============================================================================
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# =============================================================================
# Progress Bar Configuration
# =============================================================================
PROGRESS_BAR_ENABLED = os.getenv("PROGRESS_BAR_ENABLED", "true").lower() == "true"


def get_database_url() -> str:
    """Get the database connection URL."""
    return DATABASE_URL


def calculate_backoff_delay(attempt: int) -> float:
    """
    Calculate exponential backoff delay.

    Args:
        attempt: The retry attempt number (0-indexed)

    Returns:
        Delay in seconds
    """
    delay = min(BACKOFF_BASE_DELAY * (BACKOFF_MULTIPLIER ** attempt), BACKOFF_MAX_DELAY)
    return delay
