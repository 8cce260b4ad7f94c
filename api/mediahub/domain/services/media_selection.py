"""媒体库界面状态机：reduce(state, event) -> state，不依赖任何渲染逻辑"""

from typing import Dict, List, Mapping

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
)

_MODAL_FLAGS: Dict[ModalKind, str] = {
    ModalKind.UPLOAD: "show_upload_modal",
    ModalKind.CREATE_FOLDER: "show_create_folder_modal",
    ModalKind.DELETE_CONFIRM: "show_delete_confirm_modal",
    ModalKind.FILE_DETAILS: "show_file_details_modal",
}


def build_folder_path(folder: Folder, loaded: Mapping[str, Folder]) -> List[Folder]:
    """仅使用本地已加载的文件夹拼接面包屑，祖先未加载时路径会被截断

    完整路径应通过FolderService.get_folder_path获取。
    """
    path = [folder]
    seen = {folder.id}
    current = folder
    while current.parent_id is not None:
        parent = loaded.get(current.parent_id)
        if parent is None or parent.id in seen:
            break
        path.append(parent)
        seen.add(parent.id)
        current = parent
    path.reverse()
    return path


def reduce(state: MediaSelectionState, event: MediaSelectionEvent) -> MediaSelectionState:
    """根据事件计算新的界面状态，入参state不会被修改"""
    if isinstance(event, SelectFile):
        if any(file.id == event.file.id for file in state.selected_files):
            selected = [file for file in state.selected_files if file.id != event.file.id]
        else:
            selected = [*state.selected_files, event.file]
        return state.model_copy(update={"selected_files": selected})

    if isinstance(event, SelectFiles):
        unique = list({file.id: file for file in event.files}.values())
        return state.model_copy(update={"selected_files": unique})

    if isinstance(event, ClearSelection):
        return state.model_copy(update={"selected_files": []})

    if isinstance(event, SetViewMode):
        return state.model_copy(update={"view_mode": event.view_mode})

    if isinstance(event, SetSearchTerm):
        return state.model_copy(update={"search_term": event.search_term})

    if isinstance(event, SetSelectedTypes):
        return state.model_copy(update={"selected_types": list(event.selected_types)})

    if isinstance(event, SetSort):
        return state.model_copy(
            update={"sort_field": event.sort_field, "sort_order": event.sort_order}
        )

    if isinstance(event, NavigateToFolder):
        # 选择永远不会跨越一次文件夹导航
        folder_path = list(event.folder_path)
        if event.folder is not None and not folder_path:
            folder_path = [event.folder]
        return state.model_copy(
            update={
                "current_folder": event.folder,
                "folder_path": folder_path if event.folder is not None else [],
                "selected_files": [],
            }
        )

    if isinstance(event, OpenModal):
        return state.model_copy(update={_MODAL_FLAGS[event.modal]: True})

    if isinstance(event, CloseModal):
        return state.model_copy(update={_MODAL_FLAGS[event.modal]: False})

    if isinstance(event, BulkCompleted):
        if event.result.should_clear_selection:
            return state.model_copy(update={"selected_files": []})
        retry_ids = set(event.result.retry_ids)
        retained = [file for file in state.selected_files if file.id in retry_ids]
        return state.model_copy(update={"selected_files": retained})

    raise TypeError(f"未知的界面事件类型: {type(event).__name__}")
