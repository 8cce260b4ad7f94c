from typing import Optional

from mediahub.domain.models.media_selection import MediaSelectionEvent, MediaSelectionState
from pydantic import BaseModel, Field


class SelectionEventRequest(BaseModel):
    """界面状态事件请求结构，state为客户端当前持有的状态"""

    state: MediaSelectionState = Field(default_factory=MediaSelectionState)
    event: MediaSelectionEvent


class SelectionNavigateRequest(BaseModel):
    """进入文件夹请求结构，folder_id为空表示回到媒体库根目录"""

    state: MediaSelectionState = Field(default_factory=MediaSelectionState)
    folder_id: Optional[str] = None
