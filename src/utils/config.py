# runtime configuration, read once from the environment (and .env if present)
import os

from dotenv import load_dotenv

load_dotenv()


def _float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


API_URL = os.getenv("ETAAS_API_URL", "http://localhost:8000/v1/api/auth")
HTTP_TIMEOUT = _float("ETAAS_HTTP_TIMEOUT", 10.0)

DB_PATH = os.getenv("ETAAS_DB_PATH", "data/etaas.sqlite")
ACCESS_TOKEN_KEY = "etaas_access_token"

# business rules kept configurable
MARK_READ_DELAY = _float("ETAAS_MARK_READ_DELAY", 1.5)
ORDER_VISIBILITY_DAYS = int(os.getenv("ETAAS_ORDER_VISIBILITY_DAYS", "5"))

FIREBASE_CREDENTIALS = os.getenv("FIREBASE_CREDENTIALS")
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")

DEBUG = bool(os.getenv("DEBUG"))
LOG_FILE = os.getenv("ETAAS_LOG_FILE")
