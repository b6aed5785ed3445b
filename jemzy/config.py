import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Bot token (bot front end is disabled when empty)
BOT_TOKEN = os.getenv("BOT_TOKEN", "")

# Database path
BASE_DIR = Path(__file__).resolve().parent.parent
DB_PATH = Path(os.getenv("DB_PATH", BASE_DIR / "data" / "jemzy.db"))

# HTTP API
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8080"))

# Header carrying the authenticated user id, set by the session layer in front of the API
SESSION_USER_HEADER = os.getenv("SESSION_USER_HEADER", "X-User-Id")

# Storage row caps per entity kind
NEARBY_LIMITS = {
    "videos": 100,
    "treasure_chests": 200,
    "mystery_boxes": 200,
    "dragons": 100,
    "quests": 500,
}

# Radius settings in meters
DEFAULT_RADIUS_METERS = 1609.34
MAX_RADIUS_METERS = 50_000

# Beyond this latitude the longitude span of a bounding box is the whole circle
POLE_LATITUDE_LIMIT = 89.0

# Claim distance in feet
COLLECTION_RADIUS_FEET = 100

# Throttle settings
RATE_LIMIT_WINDOW = 10
RATE_LIMIT_MAX_HITS = 5

# Expiry scheduler period in seconds
CLEANUP_INTERVAL = 60

# Nearby listing size in the bot
BOT_LIST_SIZE = 5

# Logs: console at LOG_LEVEL, warnings and errors also go to LOG_DIR/errors.log
LOG_DIR = Path(os.getenv("LOG_DIR", BASE_DIR / "data"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Largest single XP award accepted as a custom amount
MAX_XP_AWARD = 1_000_000
