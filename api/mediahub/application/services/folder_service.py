import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from core.config import Settings, get_settings
from mediahub.application.errors.exceptions import (
    ConflictError,
    CycleError,
    NotFoundError,
    ValidationError,
)
from mediahub.domain.external.file_storage import FileStorage
from mediahub.domain.models.folder import Folder, FolderDeleteSummary, FolderNode
from mediahub.domain.repositories.uow import IUnitOfWork
from mediahub.domain.services.folder_tree import (
    ancestor_chain,
    build_hierarchy,
    build_path,
    descendant_ids,
    is_descendant,
    recompute_paths,
    subtree_depth,
)

logger = logging.getLogger(__name__)


class FolderService:
    """媒体库文件夹服务，维护层级完整性与物化路径"""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        file_storage: Optional[FileStorage] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        """构造函数，完成文件夹服务的初始化"""
        self._uow_factory = uow_factory
        self._file_storage = file_storage
        self._settings = settings or get_settings()

    @property
    def separator(self) -> str:
        return self._settings.media_path_separator

    def _validate_name(self, name: str) -> str:
        """校验并规范化文件夹名字"""
        name = (name or "").strip()
        if not name:
            raise ValidationError("文件夹名字不能为空")
        if self.separator in name:
            raise ValidationError(f"文件夹名字不能包含路径分隔符[{self.separator}]")
        if len(name) > self._settings.media_folder_name_max_length:
            raise ValidationError(
                f"文件夹名字长度不能超过{self._settings.media_folder_name_max_length}个字符"
            )
        return name

    @staticmethod
    async def _load_folders(uow: IUnitOfWork) -> Dict[str, Folder]:
        return {folder.id: folder for folder in await uow.folder.list_all()}

    @staticmethod
    async def _ensure_unique_name(
        uow: IUnitOfWork,
        parent_id: Optional[str],
        name: str,
        exclude_id: Optional[str] = None,
    ) -> None:
        sibling = await uow.folder.find_child_by_name(parent_id, name)
        if sibling is not None and sibling.id != exclude_id:
            raise ConflictError(f"同一目录下已存在名为[{name}]的文件夹")

    async def create_folder(
        self,
        name: str,
        parent_id: Optional[str] = None,
        creator_id: Optional[str] = None,
        description: Optional[str] = None,
        is_public: bool = False,
    ) -> Folder:
        """在指定父级下创建文件夹，parent_id为空时创建根文件夹"""
        name = self._validate_name(name)

        async with self._uow_factory() as uow:
            # 1.校验父文件夹是否存在以及层级深度
            parent: Optional[Folder] = None
            if parent_id is not None:
                folders = await self._load_folders(uow)
                if parent_id not in folders:
                    raise NotFoundError(f"父文件夹[{parent_id}]不存在")
                chain = ancestor_chain(
                    folders, parent_id, self._settings.media_folder_max_depth
                )
                if len(chain) + 1 > self._settings.media_folder_max_depth:
                    raise ValidationError(
                        f"文件夹层级超过最大深度{self._settings.media_folder_max_depth}"
                    )
                parent = folders[parent_id]

            # 2.同级重名检查
            await self._ensure_unique_name(uow, parent_id, name)

            # 3.计算物化路径并保存
            folder = Folder(
                name=name,
                description=description,
                parent_id=parent_id,
                path=build_path(name, parent, self.separator),
                is_public=is_public,
                creator_id=creator_id,
            )
            await uow.folder.save(folder)

        logger.info(f"创建文件夹成功: {folder.path} (ID: {folder.id})")
        return folder

    async def get_folder(self, folder_id: str) -> Folder:
        async with self._uow_factory() as uow:
            folder = await uow.folder.get_by_id(folder_id)
        if not folder:
            raise NotFoundError(f"该文件夹[{folder_id}]不存在")
        return folder

    async def get_root_folders(self) -> List[Folder]:
        """获取全部根文件夹"""
        async with self._uow_factory() as uow:
            return await uow.folder.list_children(None)

    async def get_hierarchy(self) -> List[FolderNode]:
        """获取嵌套的文件夹层级，每个节点携带直接包含的文件数"""
        async with self._uow_factory() as uow:
            folders = await self._load_folders(uow)
            file_counts = await uow.file.count_by_folder()
        return build_hierarchy(folders, file_counts)

    async def get_folder_path(self, folder_id: str) -> List[Folder]:
        """获取从根到指定文件夹的完整祖先链"""
        async with self._uow_factory() as uow:
            folders = await self._load_folders(uow)
        if folder_id not in folders:
            raise NotFoundError(f"该文件夹[{folder_id}]不存在")
        return ancestor_chain(folders, folder_id, self._settings.media_folder_max_depth)

    async def move_folder(self, folder_id: str, new_parent_id: Optional[str]) -> Folder:
        """将文件夹移动到新的父级下，new_parent_id为空时移动为根文件夹

        文件夹自身及全部子孙的路径在同一个UoW中重新计算。
        """
        async with self._uow_factory() as uow:
            folders = await self._load_folders(uow)

            # 1.校验文件夹与目标父级
            folder = folders.get(folder_id)
            if folder is None:
                raise NotFoundError(f"该文件夹[{folder_id}]不存在")
            if new_parent_id is not None:
                if new_parent_id not in folders:
                    raise NotFoundError(f"目标文件夹[{new_parent_id}]不存在")
                if is_descendant(folders, new_parent_id, folder_id):
                    raise CycleError()

            # 2.校验移动后的层级深度
            parent_depth = 0
            if new_parent_id is not None:
                parent_depth = len(
                    ancestor_chain(
                        folders, new_parent_id, self._settings.media_folder_max_depth
                    )
                )
            if parent_depth + subtree_depth(folders, folder_id) > self._settings.media_folder_max_depth:
                raise ValidationError(
                    f"文件夹层级超过最大深度{self._settings.media_folder_max_depth}"
                )

            # 3.目标父级下重名检查
            await self._ensure_unique_name(uow, new_parent_id, folder.name, exclude_id=folder_id)

            # 4.更新父级并整体重算路径
            folders[folder_id] = folder.model_copy(
                update={"parent_id": new_parent_id, "updated_at": datetime.now()}
            )
            updated = recompute_paths(folders, folder_id, self.separator)
            await uow.folder.save_all(updated)

        logger.info(
            f"移动文件夹成功: {folder.path} -> {updated[0].path}, 共更新{len(updated)}个文件夹路径"
        )
        return updated[0]

    async def update_folder(
        self,
        folder_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        is_public: Optional[bool] = None,
    ) -> Folder:
        """更新文件夹信息，名字变更时同步重算全部子孙路径"""
        if name is not None:
            name = self._validate_name(name)

        async with self._uow_factory() as uow:
            folders = await self._load_folders(uow)
            folder = folders.get(folder_id)
            if folder is None:
                raise NotFoundError(f"该文件夹[{folder_id}]不存在")

            changes: Dict[str, object] = {"updated_at": datetime.now()}
            if description is not None:
                changes["description"] = description
            if is_public is not None:
                changes["is_public"] = is_public

            renamed = name is not None and name != folder.name
            if renamed:
                await self._ensure_unique_name(uow, folder.parent_id, name, exclude_id=folder_id)
                changes["name"] = name

            folders[folder_id] = folder.model_copy(update=changes)
            if renamed:
                updated = recompute_paths(folders, folder_id, self.separator)
                await uow.folder.save_all(updated)
                logger.info(
                    f"重命名文件夹成功: {folder.path} -> {updated[0].path}, 共更新{len(updated)}个文件夹路径"
                )
                return updated[0]

            await uow.folder.save(folders[folder_id])
            return folders[folder_id]

    async def rename_folder(self, folder_id: str, name: str) -> Folder:
        return await self.update_folder(folder_id, name=name)

    async def delete_folder(self, folder_id: str, cascade: bool = False) -> FolderDeleteSummary:
        """删除文件夹

        cascade为False时文件夹必须为空(没有子文件夹和文件)，否则抛出ConflictError且不做任何修改；
        cascade为True时删除整棵子树中的文件夹和文件，存储对象在事务提交后尽力删除。
        """
        async with self._uow_factory() as uow:
            folders = await self._load_folders(uow)
            if folder_id not in folders:
                raise NotFoundError(f"该文件夹[{folder_id}]不存在")

            # 1.收集子树中的文件夹和文件
            subtree = [folder_id, *descendant_ids(folders, folder_id)]
            files = await uow.file.list_by_folders(subtree)

            # 2.非级联删除时要求文件夹为空
            if not cascade and (len(subtree) > 1 or files):
                raise ConflictError(
                    f"文件夹[{folders[folder_id].name}]不为空"
                    f"(包含{len(subtree) - 1}个子文件夹, {len(files)}个文件)，请确认级联删除",
                    data={"child_folders": len(subtree) - 1, "files": len(files)},
                )

            # 3.先删文件再删文件夹(子级在前)
            await uow.file.delete_many([file.id for file in files])
            await uow.folder.delete_many(list(reversed(subtree)))

        logger.info(
            f"删除文件夹成功: {folders[folder_id].path}, 共删除{len(subtree)}个文件夹, {len(files)}个文件"
        )

        # 4.事务提交后清理存储对象，失败只记录日志
        if self._file_storage is not None:
            for file in files:
                if not file.key:
                    continue
                try:
                    await self._file_storage.delete_object(file.key)
                except Exception as e:
                    logger.warning(f"清理文件[{file.id}]的存储对象失败: {str(e)}")

        return FolderDeleteSummary(
            deleted_folders=subtree,
            deleted_files=[file.id for file in files],
        )
