"""
令牌路由
POST /auth/token   - 为 user_id 签发 JWT
GET  /auth/me      - 解析当前令牌
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Header, status
from pydantic import BaseModel, Field

from stock_tracker.models.response import ApiResponse
from stock_tracker.services.auth_service import get_token_service

router = APIRouter(prefix="/auth", tags=["认证"])


class TokenRequest(BaseModel):
    user_id: str = Field(..., min_length=1)


# ── 依赖注入：从 Bearer Token 解析当前用户 ─────────────────

async def get_current_user(
    authorization: Optional[str] = Header(default=None),
) -> dict:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="未提供认证令牌")
    token = authorization[7:]
    claims = get_token_service().parse(token)
    if claims is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="令牌无效或已过期")
    return {"user_id": claims.user_id, "expires_at": claims.expires_at.isoformat()}


@router.post("/token", response_model=ApiResponse)
async def issue_token(body: TokenRequest):
    """签发 access_token"""
    token = get_token_service().issue(body.user_id)
    return ApiResponse.ok(
        data={"access_token": token, "token_type": "bearer"},
        message="Token issued",
    )


@router.get("/me", response_model=ApiResponse)
async def me(current_user: dict = Depends(get_current_user)):
    """获取当前令牌对应的用户"""
    return ApiResponse.ok(data=current_user)
