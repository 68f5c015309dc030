# storefront/storage.py
import hashlib
import hmac
import secrets
from typing import List, Optional, Tuple

from .models import User

PBKDF2_ITERATIONS = 100_000


def hash_password(password: str, salt: Optional[str] = None) -> Tuple[str, str]:
    if salt is None:
        salt = secrets.token_hex(16)
    pwd_hash = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), PBKDF2_ITERATIONS
    ).hex()
    return pwd_hash, salt


def verify_password(password: str, user: User) -> bool:
    pwd_hash, _ = hash_password(password, user.salt)
    return hmac.compare_digest(pwd_hash, user.password_hash)


def _make_user(user_id: str, email: str, password: str, role: str) -> User:
    pwd_hash, salt = hash_password(password)
    return User(id=user_id, email=email, password_hash=pwd_hash, salt=salt, role=role)


USERS: List[User] = [
    _make_user("1", "admin@example.com", "admin123", "admin"),
    _make_user("2", "user@example.com", "user123", "user"),
]


def get_user_by_email(email: str) -> Optional[User]:
    email = email.strip().lower()
    return next((u for u in USERS if u.email == email), None)


def authenticate_user(email: str, password: str) -> Optional[User]:
    user = get_user_by_email(email)
    if user is None or not verify_password(password, user):
        return None
    return user
