"""安全工具模块：JWT 校验

令牌由外部认证服务签发，媒体服务只负责解码并校验签名与有效期。
"""

from typing import Any, Optional

from core.config import get_settings
from jose import JWTError, jwt


def decode_token(token: str) -> Optional[dict[str, Any]]:
    """解码并验证 JWT token

    Args:
        token: JWT token 字符串

    Returns:
        Optional[dict]: 解码后的 payload，验证失败返回 None
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        return payload
    except JWTError:
        return None
