"""
Runtime settings read from the environment.
"""
import os

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "ecommerce")

JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me-please-0123456789abcdef")
JWT_ALGORITHM = "HS256"
JWT_EXPIRATION_MINUTES = int(os.getenv("JWT_EXPIRATION_MINUTES", "1440"))
JWT_COOKIE_NAME = os.getenv("JWT_COOKIE_NAME", "ecom_jwt")

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

IMAGE_DIR = os.getenv("IMAGE_DIR", "images")
DEFAULT_IMAGE = os.getenv("DEFAULT_IMAGE", "default.png")

SEED_DEMO_USERS = os.getenv("SEED_DEMO_USERS", "true").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Pagination defaults
PAGE_NUMBER = 0
PAGE_SIZE = 50
SORT_BY = "id"
SORT_ORDER = "asc"
