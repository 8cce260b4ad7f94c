from typing import Any, Generic, List, Optional, TypeVar

from mediahub.domain.models.file import Pagination
from pydantic import BaseModel, Field

T = TypeVar("T")


class Response(BaseModel, Generic[T]):
    """基础API响应结构，继承自Pydantic的BaseModel，并使用泛型支持多种数据类型。"""

    code: int = 200  # 业务状态码，和HTTP状态码保持一致，200表示成功
    msg: str = "success"  # 响应消息提示
    data: Optional[T] = None  # 响应数据，类型为泛型T，可以为任意类型

    @staticmethod
    def success(data: Optional[T] = None, msg: str = "success") -> "Response[T]":
        """创建一个表示成功的响应对象。

        Args:
            data (Optional[T]): 响应数据，默认为None。
            msg (str): 响应消息提示，默认为"success"。

        Returns:
            Response[T]: 表示成功的响应对象。
        """
        return Response[T](code=200, msg=msg, data=data)

    @staticmethod
    def fail(
        code: int = 400, msg: str = "fail", data: Optional[Any] = None
    ) -> "Response[Any]":
        """创建一个表示失败的响应对象。"""
        return Response[Any](code=code, msg=msg, data=data)


class PageResponse(BaseModel, Generic[T]):
    """列表接口响应结构：成功时携带数据和分页信息，失败时携带提示和错误码"""

    success: bool = True
    data: List[T] = Field(default_factory=list)
    pagination: Optional[Pagination] = None
    message: Optional[str] = None
    error: Optional[str] = None

    @staticmethod
    def ok(data: List[T], pagination: Pagination) -> "PageResponse[T]":
        return PageResponse[T](data=data, pagination=pagination)

    @staticmethod
    def fail(message: str, error: Optional[str] = None) -> "PageResponse[Any]":
        return PageResponse[Any](success=False, message=message, error=error)
