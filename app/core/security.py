# core/security.py
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from jose import JWTError, jwt

from app.core.config import settings
from app.models.user import User

logger = logging.getLogger(__name__)


class JWTManager:
    """JWT token management for authentication"""

    def __init__(self):
        self.secret_key = settings.jwt_secret
        self.algorithm = settings.jwt_algorithm
        self.user_token_expire = timedelta(days=settings.jwt_user_expiration)
        self.issuer = settings.jwt_issuer

    def create_access_token(
        self,
        user: User,
        custom_expiration: Optional[timedelta] = None,
        login_time: Optional[datetime] = None,
    ) -> str:
        """
        Create JWT access token for user

        Args:
            user: User model instance
            custom_expiration: Override default expiration
            login_time: Issued-at time, defaults to now

        Returns:
            JWT access token string
        """
        current_time = datetime.utcnow()
        issued_at = login_time if login_time else current_time
        expire = current_time + (custom_expiration or self.user_token_expire)

        payload = {
            "sub": str(user.id),  # Subject (user ID)
            "user_id": user.id,
            "role": user.status,
            "email": user.email,
            "exp": int(expire.timestamp()),
            "iat": int(issued_at.timestamp()),
            "iss": self.issuer,
            "type": "access",
        }

        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        logger.info(f"Access token created for user: {user.id}")

        return token

    def verify_token(self, token: str, token_type: str = "access") -> Dict[str, Any]:
        """
        Verify and decode JWT token
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": True},
            )

            # Verify token type (check 'type' field, not 'role')
            if payload.get("type") != token_type:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail=f"Invalid token type. Expected {token_type}",
                )

            if payload.get("iss") != self.issuer:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Invalid token issuer",
                )

            return payload

        except HTTPException:
            raise
        except JWTError as e:
            logger.warning(f"JWT verification failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired token",
                headers={"WWW-Authenticate": "Bearer"},
            )
        except Exception as e:
            logger.error(f"Token verification error: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Token verification failed",
            )


# Global instance
jwt_manager = JWTManager()
