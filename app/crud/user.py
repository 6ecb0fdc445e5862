# app/crud/user.py
import asyncio
import logging
from typing import Optional

from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from app.models.user import User
from app.core.security import hash_password, verify_password
from app.schemas.auth_schemas import UserCreate
from app.utils.clock import utcnow

# Setup logger
logger = logging.getLogger(__name__)


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    """
    Get user by email.

    Args:
        db: Database session
        email: User email

    Returns:
        User instance or None
    """
    try:
        logger.debug(f"Querying user by email: {email}")
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user:
            logger.debug(f"Found user with email: {email}")
        else:
            logger.debug(f"No user found with email: {email}")

        return user

    except SQLAlchemyError as e:
        logger.error(f"Database error querying user by email {email}: {str(e)}", exc_info=True)
        raise


async def get_user_by_id(db: AsyncSession, user_id: str) -> Optional[User]:
    try:
        logger.debug(f"Querying user by ID: {user_id}")
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    except SQLAlchemyError as e:
        logger.error(f"Database error querying user by ID {user_id}: {str(e)}", exc_info=True)
        raise


async def create_user(db: AsyncSession, user: UserCreate) -> User:
    """
    Create a new teacher account.

    Args:
        db: Database session
        user: Registration data

    Returns:
        Created User instance

    Raises:
        SQLAlchemyError: If database operation fails
    """
    try:
        logger.info(f"Creating new user with email: {user.email}")

        # hashing runs in a worker thread
        password_hash = await asyncio.to_thread(hash_password, user.password)
        db_user = User(
            name=user.name.strip(),
            email=user.email,
            password=password_hash,
            created_at=utcnow()
        )

        db.add(db_user)
        await db.commit()
        await db.refresh(db_user)

        logger.info(f"User created successfully: {user.email} (ID: {db_user.id})")
        return db_user

    except SQLAlchemyError as e:
        logger.error(f"Database error creating user {user.email}: {str(e)}", exc_info=True)
        await db.rollback()
        raise


async def authenticate_user(db: AsyncSession, email: str, password: str) -> Optional[User]:
    """
    Authenticate user credentials.

    Returns:
        User instance if authentication successful, else None
    """
    user = await get_user_by_email(db, email)

    if not user:
        logger.debug(f"Authentication failed: User not found for email: {email}")
        return None

    if not await asyncio.to_thread(verify_password, password, user.password):
        logger.debug(f"Authentication failed: Invalid password for email: {email}")
        return None

    logger.debug(f"Authentication successful for user: {email}")
    return user
