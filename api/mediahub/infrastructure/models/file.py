import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    DateTime,
    ForeignKey,
    Integer,
    PrimaryKeyConstraint,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from ...domain.models.file import Dimensions, File, ProcessingStatus
from .base import Base


class FileModel(Base):
    """媒体文件数据ORM模型"""

    __tablename__ = "media_files"
    __table_args__ = (PrimaryKeyConstraint("id", name="pk_media_files_id"),)

    id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )  # 文件id
    filename: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        server_default=text("''::character varying"),
    )  # 存储文件名
    original_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        server_default=text("''::character varying"),
    )  # 原始文件名
    mime_type: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        server_default=text("''::character varying"),
    )  # 文件mime-type类型
    size_bytes: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        server_default=text("0"),
    )  # 文件大小
    url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        server_default=text("''::text"),
    )  # 访问地址
    key: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        server_default=text("''::character varying"),
    )  # minio存储路径
    folder_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        ForeignKey("media_folders.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )  # 所属文件夹
    uploader_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        index=True,
    )  # 上传用户ID
    width: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # 图片宽度
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # 图片高度
    processing_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        server_default=text("'pending'::character varying"),
    )  # 处理状态
    alt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    caption: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tags: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )  # 标签
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

    @staticmethod
    def _domain_to_columns(file: File) -> Dict[str, Any]:
        data = file.model_dump(exclude={"dimensions"})
        data["processing_status"] = file.processing_status.value
        data["width"] = file.dimensions.width if file.dimensions else None
        data["height"] = file.dimensions.height if file.dimensions else None
        return data

    @classmethod
    def from_domain(cls, file: File) -> "FileModel":
        """从领域模型创建ORM模型"""
        return cls(**cls._domain_to_columns(file))

    def to_domain(self) -> File:
        """将ORM模型转换为领域模型"""
        dimensions = None
        if self.width is not None and self.height is not None:
            dimensions = Dimensions(width=self.width, height=self.height)
        return File(
            id=self.id,
            filename=self.filename,
            original_name=self.original_name,
            mime_type=self.mime_type,
            size_bytes=self.size_bytes,
            url=self.url,
            key=self.key,
            folder_id=self.folder_id,
            uploader_id=self.uploader_id,
            dimensions=dimensions,
            processing_status=ProcessingStatus(self.processing_status),
            alt=self.alt,
            caption=self.caption,
            description=self.description,
            tags=list(self.tags or []),
            updated_at=self.updated_at,
            created_at=self.created_at,
        )

    def update_from_domain(self, file: File) -> None:
        """从领域模型更新数据"""
        for field, value in self._domain_to_columns(file).items():
            setattr(self, field, value)
