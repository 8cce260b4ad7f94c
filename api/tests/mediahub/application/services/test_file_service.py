from datetime import datetime, timedelta

import pytest

from core.config import Settings
from mediahub.application.errors.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
)
from mediahub.application.services.file_service import FileService
from mediahub.domain.models.file import (
    File,
    FileQuery,
    ProcessingStatus,
    SortField,
    SortOrder,
)
from mediahub.domain.models.folder import Folder

pytestmark = pytest.mark.anyio


@pytest.fixture
def service(uow_factory, file_storage, settings) -> FileService:
    return FileService(uow_factory=uow_factory, file_storage=file_storage, settings=settings)


async def _seed(uow_factory, *items) -> None:
    async with uow_factory() as uow:
        for item in items:
            if isinstance(item, Folder):
                await uow.folder.save(item)
            else:
                await uow.file.save(item)


def _file(file_id: str, name: str, size: int, mime: str = "image/png", folder_id=None, minutes=0) -> File:
    return File(
        id=file_id,
        original_name=name,
        size_bytes=size,
        mime_type=mime,
        folder_id=folder_id,
        key=f"objects/{file_id}",
        created_at=datetime(2024, 1, 1) + timedelta(minutes=minutes),
    )


async def test_list_files_sorts_and_breaks_ties_by_id(service, uow_factory) -> None:
    await _seed(
        uow_factory,
        _file("c", "b.png", 10),
        _file("a", "b.png", 30),
        _file("b", "a.png", 10),
    )

    by_size = await service.list_files(FileQuery(sort_field=SortField.SIZE, sort_order=SortOrder.DESC))
    by_name = await service.list_files(FileQuery(sort_field=SortField.NAME, sort_order=SortOrder.ASC))

    assert [file.id for file in by_size.items] == ["a", "b", "c"]
    assert [file.id for file in by_name.items] == ["b", "a", "c"]


async def test_list_files_paginates(service, uow_factory) -> None:
    await _seed(uow_factory, *[_file(f"f{i}", f"{i}.png", i, minutes=i) for i in range(5)])

    page = await service.list_files(FileQuery(page=2, limit=2, sort_field=SortField.CREATED_AT, sort_order=SortOrder.ASC))

    assert [file.id for file in page.items] == ["f2", "f3"]
    assert page.pagination.total == 5
    assert page.pagination.total_pages == 3
    assert page.pagination.has_next and page.pagination.has_prev


async def test_list_files_filters(service, uow_factory) -> None:
    folder = Folder(id="folder", name="photos", path="photos")
    await _seed(
        uow_factory,
        folder,
        _file("img", "Holiday.PNG", 1, folder_id="folder"),
        _file("pdf", "report.pdf", 1, mime="application/pdf", folder_id="folder"),
        _file("loose", "holiday-2.png", 1),
    )

    in_folder = await service.list_files(FileQuery(folder_id="folder"))
    images = await service.list_files(FileQuery(mime_type_prefix="image/"))
    searched = await service.list_files(FileQuery(query="holiday"))
    unfiled = await service.list_files(FileQuery(unfiled=True))

    assert {file.id for file in in_folder.items} == {"img", "pdf"}
    assert {file.id for file in images.items} == {"img", "loose"}
    assert {file.id for file in searched.items} == {"img", "loose"}
    assert [file.id for file in unfiled.items] == ["loose"]


@pytest.mark.parametrize(
    "query",
    [
        FileQuery(page=0),
        FileQuery(limit=0),
        FileQuery(limit=101),
        FileQuery(folder_id="x", unfiled=True),
    ],
)
async def test_list_files_rejects_bad_queries(service, query) -> None:
    with pytest.raises(ValidationError):
        await service.list_files(query)


async def test_list_files_unknown_folder(service) -> None:
    with pytest.raises(NotFoundError):
        await service.list_files(FileQuery(folder_id="missing"))


async def test_reassign_folder(service, uow_factory, memory_store) -> None:
    await _seed(uow_factory, Folder(id="folder", name="photos", path="photos"), _file("f1", "a.png", 1))

    moved = await service.reassign_folder("f1", "folder")
    assert moved.folder_id == "folder"
    assert memory_store.files["f1"].folder_id == "folder"

    unfiled = await service.reassign_folder("f1", None)
    assert unfiled.folder_id is None


async def test_reassign_folder_missing_targets(service, uow_factory, memory_store) -> None:
    await _seed(uow_factory, _file("f1", "a.png", 1))

    with pytest.raises(NotFoundError):
        await service.reassign_folder("missing", None)
    with pytest.raises(NotFoundError):
        await service.reassign_folder("f1", "missing")
    assert memory_store.files["f1"].folder_id is None


async def test_mark_status_accepts_any_transition(service, uow_factory) -> None:
    await _seed(uow_factory, _file("f1", "a.png", 1))

    ready = await service.mark_status("f1", ProcessingStatus.READY)
    back = await service.mark_status("f1", ProcessingStatus.PENDING)

    assert ready.processing_status is ProcessingStatus.READY
    assert back.processing_status is ProcessingStatus.PENDING


async def test_update_file_and_tags(service, uow_factory) -> None:
    await _seed(uow_factory, _file("f1", "a.png", 1))

    updated = await service.update_file("f1", alt="logo", caption="Our logo")
    tagged = await service.add_tags("f1", ["brand", " logo ", "brand"])
    tagged = await service.add_tags("f1", ["new"])

    assert (updated.alt, updated.caption) == ("logo", "Our logo")
    assert tagged.tags == ["brand", "logo", "new"]
    with pytest.raises(ValidationError):
        await service.add_tags("f1", ["  "])


async def test_upload_file_registers_pending_record(service, file_storage, memory_store, make_image) -> None:
    data = make_image(120, 80)

    file = await service.upload_file(data, "Banner.PNG", "image/png", uploader_id="u1")

    assert file.processing_status is ProcessingStatus.PENDING
    assert (file.dimensions.width, file.dimensions.height) == (120, 80)
    assert file.filename == f"{file.id}.png"
    assert file.key.endswith(file.filename)
    assert file_storage.objects[file.key] == data
    assert file.url == file_storage.url_for(file.key)
    assert memory_store.files[file.id].uploader_id == "u1"


async def test_upload_non_image_has_no_dimensions(service) -> None:
    file = await service.upload_file(b"%PDF-1.4", "doc.pdf", "application/pdf")
    assert file.dimensions is None


async def test_upload_file_validation(uow_factory, file_storage) -> None:
    service = FileService(
        uow_factory=uow_factory,
        file_storage=file_storage,
        settings=Settings(media_upload_max_size=10),
    )

    with pytest.raises(ValidationError):
        await service.upload_file(b"", "empty.png", "image/png")
    with pytest.raises(ValidationError):
        await service.upload_file(b"x" * 11, "big.png", "image/png")
    with pytest.raises(ValidationError):
        await service.upload_file(b"x", "run.exe", "application/x-msdownload")
    assert file_storage.objects == {}


async def test_upload_rejects_duplicates_and_unknown_folder(service, make_image) -> None:
    data = make_image(10, 10)
    await service.upload_file(data, "same.png", "image/png", uploader_id="u1")

    with pytest.raises(ConflictError):
        await service.upload_file(data, "same.png", "image/png", uploader_id="u1")
    with pytest.raises(NotFoundError):
        await service.upload_file(data, "other.png", "image/png", folder_id="missing")


async def test_download_and_delete_file(service, file_storage, memory_store) -> None:
    file = await service.upload_file(b"%PDF-1.4", "doc.pdf", "application/pdf")

    stream, info = await service.download_file(file.id)
    assert stream.read() == b"%PDF-1.4"
    assert info.id == file.id

    await service.delete_file(file.id)
    assert file.id not in memory_store.files
    assert file_storage.deleted == [file.key]
    with pytest.raises(NotFoundError):
        await service.delete_file(file.id)


async def test_copy_file(service, memory_store, file_storage) -> None:
    source = await service.upload_file(b"%PDF-1.4", "doc.pdf", "application/pdf")
    await service.add_tags(source.id, ["a"])

    copied = await service.copy_file(source.id)

    assert copied.id != source.id
    assert copied.original_name == "doc (copy).pdf"
    assert copied.key != source.key
    assert file_storage.objects[copied.key] == b"%PDF-1.4"
    assert copied.tags == ["a"]
    assert set(memory_store.files) == {source.id, copied.id}


async def test_get_stats(service, uow_factory) -> None:
    await _seed(
        uow_factory,
        _file("a", "a.png", 100),
        _file("b", "b.pdf", 50, mime="application/pdf"),
        _file("c", "c.jpg", 10, mime="image/jpeg"),
    )

    stats = await service.get_stats()

    assert stats.total_files == 3
    assert stats.total_size == 160
    assert stats.file_types == {"image": 2, "application": 1}
