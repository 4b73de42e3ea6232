import hashlib
import secrets

from passlib.context import CryptContext

from .config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def new_remember_token() -> str:
    return secrets.token_urlsafe(16)


def digest_token(token: str) -> str:
    """Stored form of a remember token; only the digest ever hits the database."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def gravatar_url(email: str, size: int = 80) -> str:
    gravatar_id = hashlib.md5(email.strip().lower().encode("utf-8")).hexdigest()
    return f"https://secure.gravatar.com/avatar/{gravatar_id}?s={size}"
