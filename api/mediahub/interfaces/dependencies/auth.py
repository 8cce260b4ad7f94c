"""认证依赖模块

令牌由外部认证服务签发，这里只解析Bearer令牌中的用户标识和角色。
"""

from typing import Annotated, Optional

from core.security import decode_token
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

# HTTP Bearer 认证方案
security = HTTPBearer(auto_error=False)


class Actor(BaseModel):
    """当前请求的调用者"""

    id: str  # 用户id(令牌中的sub)
    role: str = "user"  # 用户角色

    @property
    def is_admin(self) -> bool:
        return self.role in ("admin", "super_admin")


def resolve_actor_from_access_token(token: str) -> Actor:
    """解析 access token 并返回调用者"""
    payload = decode_token(token)

    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="无效的访问令牌",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token_type = payload.get("type")
    if token_type is not None and token_type != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="无效的令牌类型",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="无效的令牌",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return Actor(id=str(user_id), role=str(payload.get("role") or "user"))


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> Actor:
    """获取当前调用者

    从 Authorization 头中提取 Bearer token，解析并验证

    Raises:
        HTTPException: 401 未授权
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="未提供认证信息",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return resolve_actor_from_access_token(credentials.credentials)


# 类型别名，方便使用
CurrentUser = Annotated[Actor, Depends(get_current_user)]
