"""
Account registration and sign-in.
"""
import logging
import re
from typing import Iterable, List, Optional

from pymongo.database import Database

from database import create_document
from errors import AuthenticationError, DuplicateError, NotFoundError, ValidationError
from payloads import LoginRequest, SignupRequest, UserInfoResponse
from schemas import AppRole, User
from security import create_token, hash_password, verify_password

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[\w.-]+@[\w.-]+\.[a-zA-Z]{2,}")

ROLE_TAGS = {
    "admin": AppRole.ADMIN,
    "seller": AppRole.SELLER,
}


def validate_field(field_name: str, value: Optional[str], min_length: int, max_length: int) -> None:
    if value is None or not value.strip():
        raise ValidationError(f"The {field_name} cannot be empty!")
    if len(value) < min_length:
        raise ValidationError(f"The {field_name} must be at least {min_length} characters long!")
    if len(value) > max_length:
        raise ValidationError(f"The {field_name} must have a maximum of {max_length} characters!")


def validate_email(email: Optional[str]) -> None:
    validate_field("email", email, 6, 50)
    if not EMAIL_PATTERN.fullmatch(email):
        raise ValidationError(f"Invalid format for User email: {email}")


def validate_signup(request: SignupRequest) -> None:
    validate_field("username", request.username, 3, 20)
    validate_email(request.email)
    validate_field("password", request.password, 6, 40)
    if request.role is not None and len(request.role) == 0:
        raise ValidationError("The role cannot be empty!")


def role_for_tag(tag: str) -> AppRole:
    """Map a role tag from a signup request; anything unknown is a plain user."""
    return ROLE_TAGS.get(tag.strip().lower(), AppRole.USER)


def resolve_roles(db: Database, tags: Optional[Iterable[str]]) -> List[str]:
    resolved: List[str] = []
    for tag in tags or ["user"]:
        app_role = role_for_tag(tag)
        if not db["role"].find_one({"role_name": app_role.value}):
            raise NotFoundError(f"Error: Role {app_role.value} not found.")
        if app_role.value not in resolved:
            resolved.append(app_role.value)
    return resolved


def register_user(db: Database, request: SignupRequest) -> str:
    validate_signup(request)

    if db["user"].find_one({"username": request.username}):
        raise DuplicateError("Error: Username is already taken!")
    if db["user"].find_one({"email": request.email}):
        raise DuplicateError("Error: Email is already in use!")

    roles = resolve_roles(db, request.role)
    user = User(
        username=request.username,
        email=request.email,
        password=hash_password(request.password),
        roles=roles,
    )
    user_id = create_document(db, "user", user)
    logger.info("Registered user %s with roles %s", request.username, roles)
    return user_id


def authenticate(db: Database, request: LoginRequest) -> UserInfoResponse:
    user = db["user"].find_one({"username": request.username})
    if not user or not verify_password(request.password, user.get("password", "")):
        logger.info("Failed sign-in for %s", request.username)
        raise AuthenticationError("Invalid username or password")

    roles = list(user.get("roles", []))
    token = create_token(user["username"], roles)
    return UserInfoResponse(id=str(user["_id"]), username=user["username"], roles=roles, jwt_token=token)


def user_info(user: dict) -> UserInfoResponse:
    return UserInfoResponse(id=str(user["_id"]), username=user["username"], roles=list(user.get("roles", [])))
