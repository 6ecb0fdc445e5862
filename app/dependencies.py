from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import UnauthorizedError
from app.core.security import decode_access_token
from app.crud.user import get_user_by_id
from app.database import database
from app.models.user import User

# tokenUrl is for the OpenAPI docs; the browser flow uses the auth cookie
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


async def get_db() -> AsyncSession:
    """
    Dependency function that yields db sessions
    """
    async with database.get_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def get_write_db() -> AsyncSession:
    """
    Like get_db, for endpoints that change data
    """
    async with database.get_session(write=True) as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def get_current_user(
        request: Request,
        token: Optional[str] = Depends(oauth2_scheme),
        db: AsyncSession = Depends(get_db)
) -> User:
    """Resolve the session owner from a bearer token or the auth cookie."""
    token = token or request.cookies.get(settings.AUTH_COOKIE_NAME)
    if not token:
        raise UnauthorizedError()

    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError:
        raise UnauthorizedError("Could not validate credentials")

    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedError("Could not validate credentials")

    user = await get_user_by_id(db, user_id)
    if user is None:
        raise UnauthorizedError("Could not validate credentials")
    return user
