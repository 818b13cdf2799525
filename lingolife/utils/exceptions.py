"""
业务异常定义
每种异常对应一个HTTP状态码，由 main.py 中的异常处理器统一转换为 {"error": message}
"""


class LingoLifeError(Exception):
    """业务异常基类"""

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(LingoLifeError):
    """输入缺失或格式错误"""
    status_code = 400


class AuthError(LingoLifeError):
    """凭证错误或令牌缺失/失效"""
    status_code = 401


class NotFoundError(LingoLifeError):
    status_code = 404


class ConflictError(LingoLifeError):
    """用户名或邮箱重复"""
    status_code = 409


class StorageError(LingoLifeError):
    """存储后端不可用或出错"""
    status_code = 500


class UpstreamError(LingoLifeError):
    """第三方接口不可用、出错或未配置"""
    status_code = 500
