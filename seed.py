"""
Bootstrap data: the fixed roles and a few demo accounts.
Safe to run on every startup.
"""
import logging

from pymongo.database import Database

import config
from database import create_document, ensure_indexes, now
from schemas import AppRole, Role, User
from security import hash_password

logger = logging.getLogger(__name__)

DEMO_USERS = [
    ("user1", "user1@example.com", "password1", [AppRole.USER]),
    ("seller1", "seller1@example.com", "password2", [AppRole.SELLER]),
    ("admin", "admin@example.com", "adminPass", [AppRole.USER, AppRole.SELLER, AppRole.ADMIN]),
]


def ensure_role(db: Database, role: AppRole) -> None:
    if not db["role"].find_one({"role_name": role.value}):
        create_document(db, "role", Role(role_name=role))
        logger.info("Created role %s", role.value)


def ensure_user(db: Database, username: str, email: str, password: str, roles: list) -> None:
    role_names = [r.value for r in roles]
    existing = db["user"].find_one({"username": username})
    if existing:
        db["user"].update_one({"_id": existing["_id"]}, {"$set": {"roles": role_names, "updated_at": now()}})
        return
    create_document(db, "user", User(username=username, email=email,
                                     password=hash_password(password), roles=role_names))
    logger.info("Created demo user %s", username)


def init_data(db: Database) -> None:
    ensure_indexes(db)
    for role in AppRole:
        ensure_role(db, role)
    if config.SEED_DEMO_USERS:
        for username, email, password, roles in DEMO_USERS:
            ensure_user(db, username, email, password, roles)
