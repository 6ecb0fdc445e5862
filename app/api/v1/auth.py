import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError, IntegrityError

from app.core.config import settings
from app.core.exceptions import EmailAlreadyRegisteredError, StoreFailureError, UnauthorizedError
from app.core.security import create_access_token
from app.crud.user import create_user, authenticate_user, get_user_by_email
from app.dependencies import get_current_user, get_db, get_write_db
from app.models.user import User
from app.schemas.auth_schemas import AuthResponse, UserCreate, UserLogin, UserResponse

# Setup logger
logger = logging.getLogger(__name__)

auth_routes = APIRouter(prefix="/auth", tags=["auth"])


def convert_to_user_response(user: User) -> UserResponse:
    """Convert SQLAlchemy model to Pydantic response model."""
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        created_at=user.created_at
    )


def issue_token(response: Response, user: User) -> str:
    token = create_access_token(user.id, user.email, user.name)
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        max_age=60 * 60 * 24 * settings.JWT_EXPIRE_DAYS,
        path="/"
    )
    return token


@auth_routes.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
        user: UserCreate,
        response: Response,
        db: AsyncSession = Depends(get_write_db)
):
    """
    Register a new teacher account.

    - **user**: name, email and password
    """
    try:
        logger.info(f"Starting registration for email: {user.email}")

        if await get_user_by_email(db, email=user.email):
            logger.warning(f"Registration failed - email already exists: {user.email}")
            raise EmailAlreadyRegisteredError(user.email)

        new_user = await create_user(db=db, user=user)
        token = issue_token(response, new_user)

        logger.info(f"User registered successfully: {user.email} (ID: {new_user.id})")
        return AuthResponse(
            message="Registration successful",
            user=convert_to_user_response(new_user),
            access_token=token
        )

    except IntegrityError as e:
        # lost a race with a concurrent registration for the same email
        logger.warning(f"Integrity error during registration for {user.email}: {str(e)}")
        raise EmailAlreadyRegisteredError(user.email)
    except SQLAlchemyError as e:
        logger.error(f"Database error during registration: {str(e)}", exc_info=True)
        raise StoreFailureError("Registration failed")


@auth_routes.post("/login", response_model=AuthResponse)
async def login_user(
        login_data: UserLogin,
        response: Response,
        db: AsyncSession = Depends(get_db)
):
    """
    Login endpoint. Sets the auth cookie and returns the same token for bearer use.
    """
    try:
        logger.info(f"Login attempt for email: {login_data.email}")

        user = await authenticate_user(db, login_data.email, login_data.password)

        if not user:
            logger.warning(f"Failed login attempt for email: {login_data.email}")
            raise UnauthorizedError("Invalid credentials")

        token = issue_token(response, user)

        logger.info(f"Successful login for user: {login_data.email} (ID: {user.id})")
        return AuthResponse(
            message="Login successful",
            user=convert_to_user_response(user),
            access_token=token
        )

    except SQLAlchemyError as e:
        logger.error(f"Database error during login: {str(e)}", exc_info=True)
        raise StoreFailureError("Login failed")


@auth_routes.post("/logout")
async def logout_user(response: Response):
    response.delete_cookie(settings.AUTH_COOKIE_NAME, path="/")
    return {"message": "Logged out"}


@auth_routes.get("/me", response_model=UserResponse)
async def read_current_user(current_user: User = Depends(get_current_user)):
    return convert_to_user_response(current_user)
