import io
from typing import Callable, Dict, Generator, List, Optional, Set

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from core.config import Settings
from mediahub.application.errors.exceptions import NotFoundError
from mediahub.domain.models.file import File
from mediahub.infrastructure.repositories.memory_uow import (
    MemoryMediaStore,
    MemoryUnitOfWork,
)
from mediahub.interfaces.dependencies.auth import Actor, get_current_user
from mediahub.interfaces.service_dependencies import (
    get_file_storage,
    get_selection_guard,
    get_uow_factory,
)
from mediahub.main import app


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


class FakeFileStorage:
    """记录在内存中的对象存储"""

    def __init__(self) -> None:
        self.objects: Dict[str, bytes] = {}
        self.deleted: List[str] = []
        self.fail_delete_for: Set[str] = set()

    @staticmethod
    def url_for(object_name: str) -> str:
        return f"http://storage.test/media/{object_name}"

    async def upload_bytes(self, data: bytes, object_name: str, content_type: Optional[str] = None) -> str:
        self.objects[object_name] = bytes(data)
        return self.url_for(object_name)

    async def download_file(self, file: File) -> io.BytesIO:
        if file.key not in self.objects:
            raise NotFoundError(f"对象[{file.key}]不存在")
        return io.BytesIO(self.objects[file.key])

    async def delete_object(self, object_name: str) -> None:
        if object_name in self.fail_delete_for:
            raise RuntimeError(f"delete failed: {object_name}")
        self.objects.pop(object_name, None)
        self.deleted.append(object_name)

    async def copy_object(self, source_object: str, target_object: str) -> str:
        self.objects[target_object] = self.objects[source_object]
        return self.url_for(target_object)

    async def presigned_url(self, object_name: str) -> str:
        return f"{self.url_for(object_name)}?signature=test"


def make_image_bytes(
    width: int = 64,
    height: int = 48,
    fmt: str = "PNG",
    mode: str = "RGB",
    color=(200, 40, 40),
) -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, (width, height), color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def memory_store() -> MemoryMediaStore:
    return MemoryMediaStore()


@pytest.fixture
def uow_factory(memory_store: MemoryMediaStore) -> Callable[[], MemoryUnitOfWork]:
    def factory() -> MemoryUnitOfWork:
        return MemoryUnitOfWork(store=memory_store)

    return factory


@pytest.fixture
def file_storage() -> FakeFileStorage:
    return FakeFileStorage()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        media_repository_backend="memory",
        media_folder_max_depth=32,
        media_page_max_limit=100,
        media_bulk_max_concurrency=4,
        media_image_max_concurrency=4,
    )


@pytest.fixture
def client(
    uow_factory: Callable[[], MemoryUnitOfWork],
    file_storage: FakeFileStorage,
) -> Generator[TestClient, None, None]:
    """
    创建一个使用内存数据仓库和内存对象存储的 TestClient 客户端。
    不进入上下文管理器，避免lifespan连接真实的Postgres/MinIO
    """
    app.dependency_overrides[get_uow_factory] = lambda: uow_factory
    app.dependency_overrides[get_file_storage] = lambda: file_storage
    app.dependency_overrides[get_current_user] = lambda: Actor(id="user-1", role="user")
    get_selection_guard.cache_clear()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    return make_image_bytes
