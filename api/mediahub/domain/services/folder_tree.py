"""文件夹层级算法

层级以扁平的 id -> Folder 映射表示，父子关系只通过 parent_id 表达，
树形视图按需分组生成，环检测只需沿祖先链向上遍历。
"""

from collections import defaultdict, deque
from typing import Dict, List, Mapping, Optional

from mediahub.application.errors.exceptions import NotFoundError, ValidationError
from mediahub.domain.models.folder import Folder, FolderNode


def build_path(name: str, parent: Optional[Folder], separator: str = "/") -> str:
    """根据父文件夹的物化路径计算当前文件夹路径，根文件夹的路径就是名字"""
    if parent is None:
        return name
    return f"{parent.path}{separator}{name}"


def ancestor_chain(
    folders: Mapping[str, Folder],
    folder_id: str,
    max_depth: int,
) -> List[Folder]:
    """返回从根到folder_id(含自身)的祖先链"""
    chain: List[Folder] = []
    seen = set()
    current_id: Optional[str] = folder_id

    while current_id is not None:
        if current_id in seen:
            raise ValidationError(f"文件夹[{folder_id}]的父级链存在环")
        if len(chain) >= max_depth:
            raise ValidationError(f"文件夹层级超过最大深度{max_depth}")

        folder = folders.get(current_id)
        if folder is None:
            raise NotFoundError(f"该文件夹[{current_id}]不存在")

        seen.add(current_id)
        chain.append(folder)
        current_id = folder.parent_id

    chain.reverse()
    return chain


def is_descendant(
    folders: Mapping[str, Folder],
    candidate_id: str,
    ancestor_id: str,
) -> bool:
    """判断candidate_id是否为ancestor_id自身或其子孙"""
    seen = set()
    current_id: Optional[str] = candidate_id
    while current_id is not None and current_id not in seen:
        if current_id == ancestor_id:
            return True
        seen.add(current_id)
        folder = folders.get(current_id)
        current_id = folder.parent_id if folder else None
    return False


def group_by_parent(folders: Mapping[str, Folder]) -> Dict[Optional[str], List[Folder]]:
    """按parent_id分组，组内按名字、id排序"""
    groups: Dict[Optional[str], List[Folder]] = defaultdict(list)
    for folder in folders.values():
        groups[folder.parent_id].append(folder)
    for children in groups.values():
        children.sort(key=lambda item: (item.name, item.id))
    return groups


def descendant_ids(folders: Mapping[str, Folder], folder_id: str) -> List[str]:
    """返回folder_id的全部子孙id(不含自身)，父级总是排在子级前面"""
    groups = group_by_parent(folders)
    result: List[str] = []
    stack = [folder_id]
    while stack:
        current = stack.pop()
        for child in groups.get(current, []):
            result.append(child.id)
            stack.append(child.id)
    return result


def subtree_depth(folders: Mapping[str, Folder], folder_id: str) -> int:
    """以folder_id为根的子树高度，单个节点为1"""
    groups = group_by_parent(folders)
    depth = 0
    level = [folder_id]
    while level:
        depth += 1
        level = [child.id for parent_id in level for child in groups.get(parent_id, [])]
    return depth


def recompute_paths(
    folders: Mapping[str, Folder],
    root_id: str,
    separator: str = "/",
) -> List[Folder]:
    """重新计算root_id及其全部子孙的物化路径，返回更新后的记录(不修改入参)"""
    root = folders.get(root_id)
    if root is None:
        raise NotFoundError(f"该文件夹[{root_id}]不存在")

    groups = group_by_parent(folders)
    parent = folders.get(root.parent_id) if root.parent_id else None
    updated_root = root.model_copy(update={"path": build_path(root.name, parent, separator)})

    updated: List[Folder] = [updated_root]
    queue = deque([updated_root])
    while queue:
        current = queue.popleft()
        for child in groups.get(current.id, []):
            new_child = child.model_copy(
                update={"path": build_path(child.name, current, separator)}
            )
            updated.append(new_child)
            queue.append(new_child)
    return updated


def build_hierarchy(
    folders: Mapping[str, Folder],
    file_counts: Optional[Mapping[str, int]] = None,
) -> List[FolderNode]:
    """生成嵌套的层级视图，先按parent_id分组再从根递归，时间复杂度与文件夹数量线性相关"""
    counts = file_counts or {}
    groups = group_by_parent(folders)

    def _build(folder: Folder) -> FolderNode:
        node = FolderNode.from_folder(folder, file_count=counts.get(folder.id, 0))
        node.children = [_build(child) for child in groups.get(folder.id, [])]
        return node

    return [_build(root) for root in groups.get(None, [])]
