from typing import Any


class AppException(RuntimeError):
    """基础应用异常类，继承RuntimeError"""

    error_code: str = "app_error"

    def __init__(
        self,
        code: int = 400,
        status_code: int = 400,
        msg: str = "应用程序异常",
        data: Any = None,
    ):
        """构造函数，完成错误数据初始化"""
        self.code = code
        self.status_code = status_code
        self.msg = msg
        self.data = data
        super().__init__(msg)


class BadRequestError(AppException):
    """客户端请求错误异常"""

    error_code = "bad_request"

    def __init__(self, msg: str = "错误的请求"):
        super().__init__(code=400, status_code=400, msg=msg)


class NotFoundError(AppException):
    """资源未找到异常(文件夹/文件不存在)"""

    error_code = "not_found"

    def __init__(self, msg: str = "资源未找到"):
        super().__init__(code=404, status_code=404, msg=msg)


class ForbiddenError(AppException):
    """权限不足异常"""

    error_code = "forbidden"

    def __init__(self, msg: str = "无权访问"):
        super().__init__(code=403, status_code=403, msg=msg)


class ValidationError(AppException):
    """数据验证错误异常，在任何数据变更前抛出"""

    error_code = "validation_error"

    def __init__(self, msg: str = "数据验证失败", data: Any = None):
        super().__init__(code=422, status_code=422, msg=msg, data=data)


class ConflictError(AppException):
    """资源冲突异常：同级重名、非空文件夹删除、批量操作重入等"""

    error_code = "conflict"

    def __init__(self, msg: str = "资源冲突", data: Any = None):
        super().__init__(code=409, status_code=409, msg=msg, data=data)


class CycleError(ConflictError):
    """移动文件夹会在层级中形成环"""

    error_code = "cycle"

    def __init__(self, msg: str = "不能将文件夹移动到自身或其子文件夹下"):
        super().__init__(msg=msg)


class EncodingError(AppException):
    """图片解码/编码失败异常"""

    error_code = "encoding_error"

    def __init__(self, msg: str = "图片处理失败"):
        super().__init__(code=422, status_code=422, msg=msg)


class ServerRequestsError(AppException):
    """服务器请求错误异常"""

    error_code = "internal_error"

    def __init__(self, msg: str = "服务器请求错误"):
        super().__init__(code=500, status_code=500, msg=msg)
