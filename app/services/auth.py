"""Authentication service."""

from dataclasses import dataclass
from datetime import datetime

import bcrypt
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.user import User


@dataclass
class AuthResult:
    """Result of an authentication attempt."""

    success: bool
    error: str | None = None
    user_id: str | None = None
    email: str | None = None


class AuthService:
    """Handles user registration and authentication."""

    @staticmethod
    def _find_by_email(db: Session, email: str) -> User | None:
        """Case-insensitive exact email match."""
        return db.query(User).filter(func.lower(User.email) == email.lower().strip()).first()

    def register(self, db: Session, email: str, password: str) -> AuthResult:
        """Register a new user. Returns AuthResult with success/error."""
        existing = self._find_by_email(db, email)
        if existing:
            return AuthResult(success=False, error="User already registered")

        password_hash = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")
        user = User(
            email=email.lower().strip(),
            password_hash=password_hash,
            is_active=True,
        )
        db.add(user)
        db.commit()
        db.refresh(user)

        return AuthResult(success=True, user_id=user.id, email=user.email)

    def authenticate(self, db: Session, email: str, password: str) -> AuthResult:
        """Authenticate a user by email and password."""
        user = self._find_by_email(db, email)
        if not user:
            return AuthResult(success=False, error="Invalid login credentials")

        if not user.is_active:
            return AuthResult(success=False, error="Account is deactivated")

        if not bcrypt.checkpw(password.encode("utf-8"), user.password_hash.encode("utf-8")):
            return AuthResult(success=False, error="Invalid login credentials")

        user.last_login_at = datetime.utcnow()
        db.commit()

        return AuthResult(success=True, user_id=user.id, email=user.email)


_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    """Get singleton auth service instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
