import pytest
from pydantic import TypeAdapter

from mediahub.domain.models.bulk import (
    BulkItemFailure,
    BulkOperationKind,
    BulkOperationResult,
)
from mediahub.domain.models.file import File, SortField, SortOrder
from mediahub.domain.models.folder import Folder
from mediahub.domain.models.media_selection import (
    BulkCompleted,
    ClearSelection,
    CloseModal,
    MediaSelectionEvent,
    MediaSelectionState,
    ModalKind,
    NavigateToFolder,
    OpenModal,
    SelectFile,
    SelectFiles,
    SetSearchTerm,
    SetSelectedTypes,
    SetSort,
    SetViewMode,
    ViewMode,
)
from mediahub.domain.services.media_selection import build_folder_path, reduce


def _file(file_id: str) -> File:
    return File(id=file_id, original_name=f"{file_id}.png", mime_type="image/png")


@pytest.fixture
def state() -> MediaSelectionState:
    return MediaSelectionState()


def test_select_file_toggles_membership(state) -> None:
    selected = reduce(state, SelectFile(file=_file("a")))
    assert selected.selected_ids == ["a"]
    assert selected.has_selection

    toggled = reduce(selected, SelectFile(file=_file("a")))
    assert toggled.selected_ids == []
    # 原状态不会被修改
    assert selected.selected_ids == ["a"]


def test_select_files_replaces_and_dedupes(state) -> None:
    state = reduce(state, SelectFile(file=_file("x")))
    state = reduce(state, SelectFiles(files=[_file("a"), _file("b"), _file("a")]))
    assert state.selected_ids == ["a", "b"]
    assert state.selected_count == 2

    assert reduce(state, ClearSelection()).selected_ids == []


def test_view_preferences(state) -> None:
    state = reduce(state, SetViewMode(view_mode=ViewMode.LIST))
    state = reduce(state, SetSearchTerm(search_term="logo"))
    state = reduce(state, SetSelectedTypes(selected_types=["image/", "video/"]))
    state = reduce(state, SetSort(sort_field=SortField.SIZE, sort_order=SortOrder.ASC))

    assert state.view_mode is ViewMode.LIST
    assert state.search_term == "logo"
    assert state.selected_types == ["image/", "video/"]
    assert (state.sort_field, state.sort_order) == (SortField.SIZE, SortOrder.ASC)


def test_navigation_always_clears_selection(state) -> None:
    root = Folder(id="root", name="photos", path="photos")
    child = Folder(id="child", name="2024", parent_id="root", path="photos/2024")
    state = reduce(state, SelectFiles(files=[_file("a"), _file("b")]))

    state = reduce(state, NavigateToFolder(folder=child, folder_path=[root, child]))
    assert state.selected_files == []
    assert state.current_folder.id == "child"
    assert [folder.id for folder in state.folder_path] == ["root", "child"]

    state = reduce(state, SelectFile(file=_file("c")))
    state = reduce(state, NavigateToFolder())
    assert state.selected_files == []
    assert state.current_folder is None
    assert state.folder_path == []


def test_modal_flags(state) -> None:
    state = reduce(state, OpenModal(modal=ModalKind.UPLOAD))
    state = reduce(state, OpenModal(modal=ModalKind.DELETE_CONFIRM))
    assert state.show_upload_modal and state.show_delete_confirm_modal
    assert not state.show_create_folder_modal

    state = reduce(state, CloseModal(modal=ModalKind.UPLOAD))
    assert not state.show_upload_modal
    assert state.show_delete_confirm_modal


def test_bulk_completed_clears_selection_when_everything_succeeded(state) -> None:
    state = reduce(state, SelectFiles(files=[_file("a"), _file("b")]))
    result = BulkOperationResult(
        operation=BulkOperationKind.DELETE, attempted=2, succeeded=["a", "b"]
    )

    assert reduce(state, BulkCompleted(result=result)).selected_files == []


def test_bulk_completed_keeps_failed_files_selected(state) -> None:
    state = reduce(state, SelectFiles(files=[_file("a"), _file("b"), _file("c")]))
    result = BulkOperationResult(
        operation=BulkOperationKind.MOVE,
        attempted=2,
        succeeded=["a"],
        failed=[BulkItemFailure(id="b", error="not_found")],
        skipped=["c"],
        cancelled=True,
    )

    assert reduce(state, BulkCompleted(result=result)).selected_ids == ["b", "c"]


def test_events_parse_from_discriminated_payload(state) -> None:
    adapter = TypeAdapter(MediaSelectionEvent)

    event = adapter.validate_python({"type": "set_view_mode", "view_mode": "grid"})

    assert isinstance(event, SetViewMode)
    assert reduce(state, event).view_mode is ViewMode.GRID


def test_unknown_event_is_rejected(state) -> None:
    with pytest.raises(TypeError):
        reduce(state, object())


def test_build_folder_path_stops_at_unloaded_ancestor() -> None:
    root = Folder(id="root", name="photos", path="photos")
    middle = Folder(id="mid", name="2024", parent_id="root", path="photos/2024")
    leaf = Folder(id="leaf", name="summer", parent_id="mid", path="photos/2024/summer")

    full = build_folder_path(leaf, {f.id: f for f in (root, middle, leaf)})
    partial = build_folder_path(leaf, {"leaf": leaf, "mid": middle})

    assert [folder.id for folder in full] == ["root", "mid", "leaf"]
    assert [folder.id for folder in partial] == ["mid", "leaf"]
