"""
Bearer token issuing and verification for the FastAPI API.
"""

import secrets
import time
from typing import Dict, Optional

import structlog
from authlib.jose import JoseError, JsonWebToken
from authlib.jose.errors import ExpiredTokenError as JoseExpiredTokenError
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from api.config import APIConfig
from api.models import TokenClaims

logger = structlog.get_logger(__name__)

# Declares the security scheme in the OpenAPI document. The header itself is
# parsed by ``authenticate`` because the "Bearer " prefix is optional.
bearer_scheme = HTTPBearer(
    scheme_name="bearerAuth",
    bearerFormat="JWT",
    description="JWT obtained from POST /api/auth/login",
    auto_error=False,
)

MISSING_TOKEN = "Token manquant"
INVALID_TOKEN = "Token invalide"


class InvalidTokenError(Exception):
    """Token is malformed, carries a bad signature or lacks an expiration."""


class ExpiredTokenError(InvalidTokenError):
    """Token expiration timestamp has passed."""


class TokenService:
    """Issues and verifies signed, time-limited bearer tokens."""

    def __init__(self, secret: str, algorithm: str = "HS256", expires_in_seconds: int = 3600):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_in_seconds = expires_in_seconds
        self._jwt = JsonWebToken([algorithm])

    @classmethod
    def from_config(cls, config: APIConfig) -> "TokenService":
        return cls(
            secret=config.jwt_secret,
            algorithm=config.jwt_algorithm,
            expires_in_seconds=config.access_token_expire_seconds,
        )

    def issue(self, username: str, now: Optional[int] = None) -> str:
        """
        Issue a token for a username.

        Args:
            username: Value of the username claim, not validated
            now: Issue time as a unix timestamp (defaults to the current time)

        Returns:
            Signed JWT string
        """
        issued_at = int(time.time()) if now is None else now
        payload = {
            "username": username,
            "iat": issued_at,
            "exp": issued_at + self.expires_in_seconds,
        }
        token = self._jwt.encode({"alg": self.algorithm, "typ": "JWT"}, payload, self.secret)
        return token.decode() if isinstance(token, bytes) else token

    def verify(self, token: str, now: Optional[int] = None) -> TokenClaims:
        """
        Verify a token's signature and expiration.

        Args:
            token: Encoded JWT
            now: Reference time as a unix timestamp (defaults to the current time)

        Returns:
            Decoded claims

        Raises:
            ExpiredTokenError: If the token has expired
            InvalidTokenError: If the token is malformed or its signature does not match
        """
        try:
            claims = self._jwt.decode(
                token, self.secret, claims_options={"exp": {"essential": True}}
            )
            claims.validate(now=now)
        except JoseExpiredTokenError as e:
            raise ExpiredTokenError(str(e)) from e
        except (JoseError, ValueError) as e:
            raise InvalidTokenError(str(e)) from e

        return TokenClaims(
            username=str(claims.get("username") or ""),
            iat=claims.get("iat"),
            exp=claims["exp"],
        )


def check_credentials(users: Dict[str, str], username: str, password: str) -> bool:
    """
    Check a username/password pair against the configured credentials.

    An empty credential list accepts everything.
    """
    if not users:
        return True
    expected = users.get(username)
    if expected is None:
        return False
    return secrets.compare_digest(expected.encode(), password.encode())


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


async def authenticate(
    request: Request,
    _credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    token_service: TokenService = Depends(get_token_service),
) -> TokenClaims:
    """
    Verify the bearer token of a request.

    Args:
        request: Incoming request; the decoded claims are stored on ``request.state.user``

    Returns:
        Decoded token claims

    Raises:
        HTTPException: 401 if the Authorization header is missing, 403 if the token is invalid
    """
    header = request.headers.get("Authorization")
    if not header:
        logger.warning("Missing bearer token", path=request.url.path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=MISSING_TOKEN,
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = header[len("Bearer "):] if header.startswith("Bearer ") else header
    try:
        claims = token_service.verify(token)
    except InvalidTokenError as e:
        logger.warning("Invalid bearer token", path=request.url.path, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=INVALID_TOKEN,
        )

    request.state.user = claims
    return claims
