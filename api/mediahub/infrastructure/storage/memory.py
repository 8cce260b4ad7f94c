import logging
from functools import lru_cache

from mediahub.domain.repositories.uow import IUnitOfWork
from mediahub.infrastructure.repositories.memory_uow import (
    MemoryMediaStore,
    MemoryUnitOfWork,
)

logger = logging.getLogger(__name__)


@lru_cache()
def get_memory_store() -> MemoryMediaStore:
    """lru_cache 单例：进程内共享的媒体数据"""
    logger.info("使用进程内存作为媒体库数据仓库")
    return MemoryMediaStore()


def get_memory_uow() -> IUnitOfWork:
    """创建基于内存的UoW"""
    return MemoryUnitOfWork(store=get_memory_store())
