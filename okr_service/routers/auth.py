"""Auth router - caller identity from bearer tokens."""
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError

from okr_service.models.user import CallerScope
from okr_service.utils.auth import verify_access_token


router = APIRouter(prefix="/auth", tags=["auth"])
security = HTTPBearer(auto_error=False)


async def get_current_scope(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> CallerScope:
    """
    Dependency to get the caller's user and tenant from the JWT token.

    Args:
        credentials: HTTP bearer credentials

    Returns:
        CallerScope from token

    Raises:
        HTTPException: If token is missing or invalid (401)
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    try:
        return verify_access_token(credentials.credentials)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )


@router.get("/me", response_model=CallerScope)
async def get_current_caller(scope: CallerScope = Depends(get_current_scope)):
    """Return the caller scope encoded in the token."""
    return scope
