"""
API dependencies: Firebase ID-token verification and role gating.

Practitioners sign in on the frontend; every request carries their ID token.
"""

from typing import List, Callable

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from firebase_admin import auth
from firebase_admin.auth import ExpiredIdTokenError, InvalidIdTokenError, RevokedIdTokenError

security = HTTPBearer(auto_error=True)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
):
    """
    Verify Firebase ID token from Authorization header.

    Expects:
        Authorization: Bearer <id_token>
    """
    try:
        return auth.verify_id_token(credentials.credentials)
    except (InvalidIdTokenError, ExpiredIdTokenError, RevokedIdTokenError, ValueError) as exc:
        raise HTTPException(
            status_code=401,
            detail="Invalid ID token",
        ) from exc


def user_roles(user: dict) -> List[str]:
    role = user.get("role") or user.get("roles") or []
    return list(role) if isinstance(role, (list, tuple)) else [role]


def require_role(allowed: List[str]) -> Callable:
    """
    Return a FastAPI dependency that enforces a user's role.

    The ID token is expected to carry a custom claim `role`, e.g.
    {'role': 'doctor'} for practitioners.
    """

    def _checker(user=Depends(get_current_user)):
        if not any(r in allowed for r in user_roles(user)):
            raise HTTPException(
                status_code=403,
                detail="Insufficient permissions",
            )
        return user

    return _checker
