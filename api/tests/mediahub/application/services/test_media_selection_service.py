import pytest

from mediahub.application.errors.exceptions import NotFoundError
from mediahub.application.services.folder_service import FolderService
from mediahub.application.services.media_selection_service import MediaSelectionService
from mediahub.domain.models.bulk import BulkItemFailure, BulkOperationKind, BulkOperationResult
from mediahub.domain.models.file import File
from mediahub.domain.models.media_selection import MediaSelectionState, SelectFiles

pytestmark = pytest.mark.anyio


@pytest.fixture
def selection_service(uow_factory, settings) -> MediaSelectionService:
    return MediaSelectionService(FolderService(uow_factory=uow_factory, settings=settings))


async def test_navigate_loads_full_breadcrumb(selection_service, uow_factory, settings) -> None:
    folders = FolderService(uow_factory=uow_factory, settings=settings)
    photos = await folders.create_folder("photos")
    trips = await folders.create_folder("trips", parent_id=photos.id)
    paris = await folders.create_folder("paris", parent_id=trips.id)

    state = selection_service.dispatch(
        MediaSelectionState(), SelectFiles(files=[File(id="a"), File(id="b")])
    )
    state = await selection_service.navigate(state, paris.id)

    assert state.current_folder.id == paris.id
    assert [folder.name for folder in state.folder_path] == ["photos", "trips", "paris"]
    assert state.selected_files == []


async def test_navigate_to_root_resets_path(selection_service, uow_factory, settings) -> None:
    folders = FolderService(uow_factory=uow_factory, settings=settings)
    photos = await folders.create_folder("photos")
    state = await selection_service.navigate(MediaSelectionState(), photos.id)

    state = await selection_service.navigate(state, None)

    assert state.current_folder is None
    assert state.folder_path == []


async def test_navigate_to_missing_folder_keeps_state(selection_service) -> None:
    state = MediaSelectionState()
    with pytest.raises(NotFoundError):
        await selection_service.navigate(state, "missing")


def test_apply_bulk_result_keeps_failed_for_retry(selection_service) -> None:
    files = [File(id="a"), File(id="b"), File(id="c")]
    state = selection_service.dispatch(MediaSelectionState(), SelectFiles(files=files))
    result = BulkOperationResult(
        operation=BulkOperationKind.DELETE,
        attempted=3,
        succeeded=["a", "c"],
        failed=[BulkItemFailure(id="b", error="not_found")],
    )

    state = selection_service.apply_bulk_result(state, result)

    assert state.selected_ids == ["b"]


def test_apply_bulk_result_clears_on_success(selection_service) -> None:
    state = selection_service.dispatch(MediaSelectionState(), SelectFiles(files=[File(id="a")]))
    result = BulkOperationResult(operation=BulkOperationKind.TAG, attempted=1, succeeded=["a"])

    state = selection_service.apply_bulk_result(state, result)

    assert not state.has_selection
