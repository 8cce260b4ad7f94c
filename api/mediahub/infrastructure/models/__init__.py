from .base import Base
from .file import FileModel
from .folder import FolderModel

__all__ = ["Base", "FileModel", "FolderModel"]
