from abc import ABC, abstractmethod
from typing import TypeVar

from .file_repository import FileRepository
from .folder_repository import FolderRepository

T = TypeVar("T", bound="IUnitOfWork")


class IUnitOfWork(ABC):
    """Uow模式协议接口，一个上下文对应一个事务"""

    file: FileRepository
    folder: FolderRepository

    @abstractmethod
    async def commit(self):
        """提交数据持久化"""
        ...

    @abstractmethod
    async def rollback(self):
        """数据回滚"""
        ...

    @abstractmethod
    async def __aenter__(self: T) -> T:
        """进入上下文管理器"""
        ...

    @abstractmethod
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """退出上下文管理器"""
        ...
