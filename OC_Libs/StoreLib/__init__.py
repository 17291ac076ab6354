"""
StoreLib - Storage collaborators for Open Canvas

Protocols describing project and asset storage, plus in-memory and
file-backed implementations.
"""

from OC_Libs.StoreLib.persistence import AssetStore, ProjectStore
from OC_Libs.StoreLib.memory_store import MemoryProjectStore
from OC_Libs.StoreLib.file_store import FileProjectStore, get_projects_dir

__all__ = [
    "AssetStore",
    "ProjectStore",
    "MemoryProjectStore",
    "FileProjectStore",
    "get_projects_dir",
]
