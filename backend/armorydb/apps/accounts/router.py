from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from armorydb.database import get_db

from . import schemas, services

router = APIRouter(prefix="", tags=["auth"])


# ---------------------------------------------------------------------------
# LOGIN
# ---------------------------------------------------------------------------


@router.post(
    "/login",
    response_model=schemas.LoginResponse,
    summary="Login with username and password",
)
def login(
    payload: schemas.LoginRequest,
    db: Session = Depends(get_db),
):
    """
    Returns the user's id, role and home base. The frontend sends these
    back as X-Role / X-Base-ID headers; the access token is an alternative
    for clients that prefer a Bearer header.
    """
    try:
        user = services.authenticate_user(db, login_req=payload)
    except services.AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc) or "Invalid credentials",
        )

    token, expires_in = services.issue_access_token_for_user(user)
    return schemas.LoginResponse(
        user=schemas.UserRead.model_validate(user),
        access_token=token,
        expires_in=expires_in,
    )
