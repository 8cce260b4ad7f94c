from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .bulk import BulkOperationResult
from .file import File, SortField, SortOrder
from .folder import Folder


class ViewMode(str, Enum):
    """媒体库视图模式"""

    CARD = "card"
    GRID = "grid"
    LIST = "list"


class ModalKind(str, Enum):
    """媒体库中的弹窗类型"""

    UPLOAD = "upload"
    CREATE_FOLDER = "create_folder"
    DELETE_CONFIRM = "delete_confirm"
    FILE_DETAILS = "file_details"


class MediaSelectionState(BaseModel):
    """媒体库界面的选择/视图状态，不可变，只能通过reduce产生新状态"""

    model_config = ConfigDict(frozen=True)

    selected_files: List[File] = Field(default_factory=list)
    view_mode: ViewMode = ViewMode.CARD
    search_term: str = ""
    selected_types: List[str] = Field(default_factory=list)
    sort_field: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC
    current_folder: Optional[Folder] = None  # 为空表示媒体库根目录
    folder_path: List[Folder] = Field(default_factory=list)  # 面包屑，根在前
    show_upload_modal: bool = False
    show_create_folder_modal: bool = False
    show_delete_confirm_modal: bool = False
    show_file_details_modal: bool = False

    @property
    def selected_count(self) -> int:
        return len(self.selected_files)

    @property
    def has_selection(self) -> bool:
        return self.selected_count > 0

    @property
    def selected_ids(self) -> List[str]:
        return [file.id for file in self.selected_files]


class SelectFile(BaseModel):
    """切换单个文件的选中状态"""

    type: Literal["select_file"] = "select_file"
    file: File


class SelectFiles(BaseModel):
    """用给定文件替换当前选择"""

    type: Literal["select_files"] = "select_files"
    files: List[File] = Field(default_factory=list)


class ClearSelection(BaseModel):
    type: Literal["clear_selection"] = "clear_selection"


class SetViewMode(BaseModel):
    type: Literal["set_view_mode"] = "set_view_mode"
    view_mode: ViewMode


class SetSearchTerm(BaseModel):
    type: Literal["set_search_term"] = "set_search_term"
    search_term: str = ""


class SetSelectedTypes(BaseModel):
    type: Literal["set_selected_types"] = "set_selected_types"
    selected_types: List[str] = Field(default_factory=list)


class SetSort(BaseModel):
    type: Literal["set_sort"] = "set_sort"
    sort_field: SortField
    sort_order: SortOrder


class NavigateToFolder(BaseModel):
    """进入文件夹，folder_path为完整祖先链(根在前，含目标文件夹)"""

    type: Literal["navigate_to_folder"] = "navigate_to_folder"
    folder: Optional[Folder] = None
    folder_path: List[Folder] = Field(default_factory=list)


class OpenModal(BaseModel):
    type: Literal["open_modal"] = "open_modal"
    modal: ModalKind


class CloseModal(BaseModel):
    type: Literal["close_modal"] = "close_modal"
    modal: ModalKind


class BulkCompleted(BaseModel):
    """批量操作结束，全部成功则清空选择，否则只保留需要重试的文件"""

    type: Literal["bulk_completed"] = "bulk_completed"
    result: BulkOperationResult


MediaSelectionEvent = Annotated[
    Union[
        SelectFile,
        SelectFiles,
        ClearSelection,
        SetViewMode,
        SetSearchTerm,
        SetSelectedTypes,
        SetSort,
        NavigateToFolder,
        OpenModal,
        CloseModal,
        BulkCompleted,
    ],
    Field(discriminator="type"),
]
