import pytest

from core.config import Settings
from mediahub.application.errors.exceptions import (
    ConflictError,
    CycleError,
    NotFoundError,
    ValidationError,
)
from mediahub.application.services.folder_service import FolderService
from mediahub.domain.models.file import File

pytestmark = pytest.mark.anyio


@pytest.fixture
def service(uow_factory, file_storage, settings) -> FolderService:
    return FolderService(uow_factory=uow_factory, file_storage=file_storage, settings=settings)


def _assert_path_invariant(memory_store) -> None:
    folders = memory_store.folders
    for folder in folders.values():
        if folder.parent_id is None:
            assert folder.path == folder.name
        else:
            assert folder.path == f"{folders[folder.parent_id].path}/{folder.name}"


async def test_create_root_and_child_folders(service, memory_store) -> None:
    root = await service.create_folder("photos", creator_id="u1")
    child = await service.create_folder("2024", parent_id=root.id)

    assert root.path == "photos"
    assert root.creator_id == "u1"
    assert child.path == "photos/2024"
    assert child.parent_id == root.id
    _assert_path_invariant(memory_store)


async def test_create_folder_strips_name(service) -> None:
    folder = await service.create_folder("  logos  ")
    assert folder.name == "logos"


@pytest.mark.parametrize("name", ["", "   ", "a/b", "x" * 256])
async def test_create_folder_rejects_bad_names(service, memory_store, name) -> None:
    with pytest.raises(ValidationError):
        await service.create_folder(name)
    assert memory_store.folders == {}


async def test_create_folder_rejects_duplicate_sibling(service) -> None:
    root = await service.create_folder("photos")
    await service.create_folder("2024", parent_id=root.id)

    with pytest.raises(ConflictError):
        await service.create_folder("2024", parent_id=root.id)
    # 不同父级下可以重名
    other = await service.create_folder("2024")
    assert other.path == "2024"


async def test_create_folder_unknown_parent(service) -> None:
    with pytest.raises(NotFoundError):
        await service.create_folder("orphan", parent_id="missing")


async def test_create_folder_enforces_max_depth(uow_factory) -> None:
    service = FolderService(uow_factory=uow_factory, settings=Settings(media_folder_max_depth=2))
    root = await service.create_folder("a")
    child = await service.create_folder("b", parent_id=root.id)

    with pytest.raises(ValidationError):
        await service.create_folder("c", parent_id=child.id)


async def test_move_folder_updates_descendant_paths(service, memory_store) -> None:
    photos = await service.create_folder("photos")
    year = await service.create_folder("2024", parent_id=photos.id)
    summer = await service.create_folder("summer", parent_id=year.id)
    archive = await service.create_folder("archive")

    moved = await service.move_folder(year.id, archive.id)

    assert moved.path == "archive/2024"
    assert memory_store.folders[summer.id].path == "archive/2024/summer"
    assert memory_store.folders[photos.id].path == "photos"
    _assert_path_invariant(memory_store)


async def test_move_folder_to_root(service, memory_store) -> None:
    photos = await service.create_folder("photos")
    year = await service.create_folder("2024", parent_id=photos.id)
    summer = await service.create_folder("summer", parent_id=year.id)

    moved = await service.move_folder(year.id, None)

    assert moved.parent_id is None
    assert moved.path == "2024"
    assert memory_store.folders[summer.id].path == "2024/summer"


async def test_move_folder_under_itself_or_descendant_is_cycle(service, memory_store) -> None:
    photos = await service.create_folder("photos")
    year = await service.create_folder("2024", parent_id=photos.id)
    summer = await service.create_folder("summer", parent_id=year.id)
    before = {key: value.model_copy() for key, value in memory_store.folders.items()}

    with pytest.raises(CycleError):
        await service.move_folder(photos.id, summer.id)
    with pytest.raises(CycleError):
        await service.move_folder(photos.id, photos.id)

    assert memory_store.folders == before


async def test_cycle_error_is_a_conflict() -> None:
    assert issubclass(CycleError, ConflictError)
    assert CycleError().error_code == "cycle"


async def test_move_folder_name_clash(service) -> None:
    first = await service.create_folder("first")
    second = await service.create_folder("second")
    await service.create_folder("shared", parent_id=first.id)
    clash = await service.create_folder("shared", parent_id=second.id)

    with pytest.raises(ConflictError):
        await service.move_folder(clash.id, first.id)


async def test_move_folder_not_found(service) -> None:
    root = await service.create_folder("root")
    with pytest.raises(NotFoundError):
        await service.move_folder("missing", root.id)
    with pytest.raises(NotFoundError):
        await service.move_folder(root.id, "missing")


async def test_move_folder_depth_counts_whole_subtree(uow_factory) -> None:
    service = FolderService(uow_factory=uow_factory, settings=Settings(media_folder_max_depth=3))
    a = await service.create_folder("a")
    b = await service.create_folder("b", parent_id=a.id)
    x = await service.create_folder("x")
    y = await service.create_folder("y", parent_id=x.id)

    with pytest.raises(ValidationError):
        await service.move_folder(x.id, b.id)
    await service.move_folder(y.id, b.id)


async def test_rename_folder_propagates_paths(service, memory_store) -> None:
    photos = await service.create_folder("photos")
    year = await service.create_folder("2024", parent_id=photos.id)

    renamed = await service.rename_folder(photos.id, "pictures")

    assert renamed.path == "pictures"
    assert memory_store.folders[year.id].path == "pictures/2024"


async def test_rename_folder_conflict(service) -> None:
    await service.create_folder("photos")
    docs = await service.create_folder("docs")
    with pytest.raises(ConflictError):
        await service.rename_folder(docs.id, "photos")


async def test_update_folder_without_rename(service) -> None:
    folder = await service.create_folder("photos")
    updated = await service.update_folder(folder.id, description="holiday", is_public=True)
    assert updated.description == "holiday"
    assert updated.is_public
    assert updated.path == "photos"


async def test_get_folder_path_and_roots(service) -> None:
    photos = await service.create_folder("photos")
    year = await service.create_folder("2024", parent_id=photos.id)
    await service.create_folder("docs")

    chain = await service.get_folder_path(year.id)
    roots = await service.get_root_folders()

    assert [folder.name for folder in chain] == ["photos", "2024"]
    assert [folder.name for folder in roots] == ["docs", "photos"]
    with pytest.raises(NotFoundError):
        await service.get_folder("missing")


async def test_get_hierarchy_carries_file_counts(service, uow_factory) -> None:
    photos = await service.create_folder("photos")
    year = await service.create_folder("2024", parent_id=photos.id)
    async with uow_factory() as uow:
        await uow.file.save(File(id="f1", folder_id=year.id))
        await uow.file.save(File(id="f2", folder_id=year.id))
        await uow.file.save(File(id="f3"))

    hierarchy = await service.get_hierarchy()

    assert [node.name for node in hierarchy] == ["photos"]
    assert hierarchy[0].file_count == 0
    assert hierarchy[0].children[0].file_count == 2


async def test_delete_non_empty_folder_without_cascade_changes_nothing(
    service, uow_factory, memory_store, file_storage
) -> None:
    folder = await service.create_folder("photos")
    async with uow_factory() as uow:
        for index in range(3):
            await uow.file.save(File(id=f"f{index}", key=f"k{index}", folder_id=folder.id))
    version = memory_store.version

    with pytest.raises(ConflictError):
        await service.delete_folder(folder.id)

    assert memory_store.version == version
    assert folder.id in memory_store.folders
    assert all(file.folder_id == folder.id for file in memory_store.files.values())
    assert file_storage.deleted == []


async def test_delete_folder_with_child_folder_requires_cascade(service) -> None:
    folder = await service.create_folder("photos")
    await service.create_folder("2024", parent_id=folder.id)
    with pytest.raises(ConflictError):
        await service.delete_folder(folder.id, cascade=False)


async def test_delete_empty_folder(service, memory_store) -> None:
    folder = await service.create_folder("empty")
    summary = await service.delete_folder(folder.id)
    assert summary.deleted_folders == [folder.id]
    assert summary.deleted_files == []
    assert memory_store.folders == {}


async def test_cascade_delete_removes_subtree_and_objects(
    service, uow_factory, memory_store, file_storage
) -> None:
    photos = await service.create_folder("photos")
    year = await service.create_folder("2024", parent_id=photos.id)
    docs = await service.create_folder("docs")
    async with uow_factory() as uow:
        await uow.file.save(File(id="f1", key="k1", folder_id=photos.id))
        await uow.file.save(File(id="f2", key="k2", folder_id=year.id))
        await uow.file.save(File(id="f3", key="k3", folder_id=docs.id))
    file_storage.fail_delete_for.add("k2")

    summary = await service.delete_folder(photos.id, cascade=True)

    assert set(summary.deleted_folders) == {photos.id, year.id}
    assert set(summary.deleted_files) == {"f1", "f2"}
    assert set(memory_store.folders) == {docs.id}
    assert set(memory_store.files) == {"f3"}
    # 存储对象清理失败只记录日志
    assert file_storage.deleted == ["k1"]


async def test_delete_missing_folder(service) -> None:
    with pytest.raises(NotFoundError):
        await service.delete_folder("missing", cascade=True)
