from .base import Base
from .directory_counts import DirectoryCountDb
from .hook_bindings import HookBindingDb
from .objects import ObjectDb

__all__ = [
    "Base",
    "DirectoryCountDb",
    "HookBindingDb",
    "ObjectDb",
]
