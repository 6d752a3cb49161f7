"""Authentication API endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.rate_limit import limiter
from app.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from app.services.auth import AuthResult, get_auth_service
from app.services.jwt import get_jwt_service

logger = logging.getLogger("idea_saver")

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


def _token_response(result: AuthResult) -> TokenResponse:
    token = get_jwt_service().create_token(user_id=result.user_id, email=result.email)  # type: ignore[arg-type]
    return TokenResponse(token=token, user_id=result.user_id, email=result.email)  # type: ignore[arg-type]


@router.post("/register", response_model=TokenResponse)
@limiter.limit("5/minute")
def register(request: Request, body: RegisterRequest, db: Session = Depends(get_db)) -> TokenResponse:
    """Register a new user account and sign it in."""
    result = get_auth_service().register(db, body.email, body.password)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)
    logger.info("Registered user %s", result.user_id)
    return _token_response(result)


@router.post("/login", response_model=TokenResponse)
@limiter.limit("10/minute")
def login(request: Request, body: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    """Authenticate and receive a bearer token."""
    result = get_auth_service().authenticate(db, body.email, body.password)
    if not result.success:
        raise HTTPException(status_code=401, detail=result.error)
    return _token_response(result)


@router.get("/verify")
def verify_token(token: str) -> dict:
    """Verify a token and return the session user it identifies."""
    payload = get_jwt_service().decode_token(token)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return {"valid": True, "user_id": payload["sub"], "email": payload["email"]}
