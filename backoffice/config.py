import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./backoffice.db")

# Redis is optional - without it the permission cache is simply bypassed
REDIS_URL = os.getenv("REDIS_URL")
PERMISSION_CACHE_TTL = int(os.getenv("PERMISSION_CACHE_TTL", "300"))

# Session identity: the gateway forwards the authenticated user id in this header
USER_ID_HEADER = os.getenv("USER_ID_HEADER", "X-User-Id")
# Username that bypasses permission checks and branch scoping
ROOT_USERNAME = os.getenv("ROOT_USERNAME", "root")

# Frontend origins allowed by CORS (comma separated)
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:3000,http://localhost:5173",
).split(",")

# REST client defaults
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")
API_TIMEOUT = float(os.getenv("API_TIMEOUT", "30"))

# Upper bound on rows returned by the goods shipment listing
GOODS_LIST_MAX_LIMIT = int(os.getenv("GOODS_LIST_MAX_LIMIT", "10000"))
