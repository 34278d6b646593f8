"""
令牌服务
以投资组合的 user_id 作为令牌主体签发 JWT，不落库、不校验用户是否存在
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from pydantic import BaseModel, ValidationError

from stock_tracker.config import settings

logger = logging.getLogger(__name__)

_TOKEN_SCOPE = "portfolio"


class PortfolioClaims(BaseModel):
    """令牌声明：sub 即投资组合的 user_id"""
    sub: str
    iat: int
    exp: int
    scope: str = _TOKEN_SCOPE

    @property
    def user_id(self) -> str:
        return self.sub

    @property
    def expires_at(self) -> datetime:
        return datetime.fromtimestamp(self.exp, tz=timezone.utc)


class TokenService:
    """为投资组合所有者签发 / 解析访问令牌"""

    def __init__(self, secret: str, algorithm: str = "HS256", ttl_minutes: int = 60):
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = timedelta(minutes=ttl_minutes)

    def issue(self, user_id: str, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(tz=timezone.utc)
        claims = PortfolioClaims(
            sub=user_id,
            iat=int(issued_at.timestamp()),
            exp=int((issued_at + self._ttl).timestamp()),
        )
        return jwt.encode(claims.model_dump(), self._secret, algorithm=self._algorithm)

    def parse(self, token: str) -> Optional[PortfolioClaims]:
        """令牌无效、过期或 scope 不符时返回 None"""
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]},
            )
            claims = PortfolioClaims.model_validate(payload)
        except jwt.ExpiredSignatureError:
            logger.debug("Token 已过期")
            return None
        except (jwt.InvalidTokenError, ValidationError) as exc:
            logger.debug(f"Token 无效: {exc}")
            return None
        if claims.scope != _TOKEN_SCOPE:
            logger.debug(f"Token scope 不符: {claims.scope}")
            return None
        return claims


# ── 模块级别单例 ──────────────────────────────────────────
_token_service: Optional[TokenService] = None


def get_token_service() -> TokenService:
    global _token_service
    if _token_service is None:
        _token_service = TokenService(
            secret=settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
            ttl_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
        )
    return _token_service
