import os, dotenv

dotenv.load_dotenv()

TIKTOK_URL = os.getenv("TIKTOK_URL", "https://www.tiktok.com")
SEARCH_URL = os.getenv("SEARCH_URL", "https://www.tiktok.com/api/search/general/full/")
TTWID_COOKIE = "ttwid"
PAGE_STRIDE = 12  # endpoint-defined offset step

COOKIE_SETTLE_TIMEOUT = float(os.getenv("COOKIE_SETTLE_TIMEOUT", 5))
COOKIE_POLL_INTERVAL = float(os.getenv("COOKIE_POLL_INTERVAL", 0.25))
FULL_COOKIE_JAR = os.getenv("FULL_COOKIE_JAR", "true").strip().lower() not in ("0", "false", "no", "")

# unset -> httpx default timeout
SEARCH_TIMEOUT = float(os.getenv("SEARCH_TIMEOUT")) if os.getenv("SEARCH_TIMEOUT") else None
USER_AGENT = os.getenv("USER_AGENT") or None

PROXY_POOL = [p.strip() for p in os.getenv("PROXY_POOL", "").split(",") if p.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
