"""Bearer token helpers shared with the account service.

The account service (registration, login, password handling) issues HS256
JWTs whose ``sub`` claim is the user id. This service only verifies them;
``create_access_token`` exists for that collaborator and for tests.
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from linkshortener.config import Settings, get_settings

__all__ = ["InvalidToken", "create_access_token", "decode_access_token"]


class InvalidToken(Exception):
    pass


def create_access_token(user_id: int, settings: Settings | None = None, expires_delta: timedelta | None = None) -> str:
    settings = settings or get_settings()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"sub": str(user_id), "exp": expire}
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, settings: Settings | None = None) -> int:
    settings = settings or get_settings()
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise InvalidToken("Invalid token") from exc

    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError) as exc:
        raise InvalidToken("Token subject is not a user id") from exc
