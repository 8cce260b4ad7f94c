import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    PrimaryKeyConstraint,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from ...domain.models.folder import Folder
from .base import Base


class FolderModel(Base):
    """媒体文件夹ORM模型"""

    __tablename__ = "media_folders"
    __table_args__ = (
        PrimaryKeyConstraint("id", name="pk_media_folders_id"),
        UniqueConstraint("parent_id", "name", name="uq_media_folders_parent_id_name"),
    )

    id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )  # 文件夹id
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )  # 文件夹名字
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )  # 文件夹描述
    parent_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        ForeignKey("media_folders.id"),
        nullable=True,
        index=True,
    )  # 父文件夹id
    path: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        server_default=text("''::text"),
    )  # 物化路径
    is_public: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("false"),
    )  # 是否公开
    creator_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        index=True,
    )  # 创建者ID(用户由外部服务管理)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        onupdate=datetime.now,
        server_default=text("CURRENT_TIMESTAMP(0)"),
    )  # 更新时间
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP(0)"),
    )  # 创建时间

    @classmethod
    def from_domain(cls, folder: Folder) -> "FolderModel":
        """从领域模型创建ORM模型"""
        return cls(**folder.model_dump())

    def to_domain(self) -> Folder:
        """将ORM模型转换为领域模型"""
        return Folder.model_validate(self, from_attributes=True)

    def update_from_domain(self, folder: Folder) -> None:
        """从领域模型更新数据"""
        for field, value in folder.model_dump().items():
            setattr(self, field, value)
