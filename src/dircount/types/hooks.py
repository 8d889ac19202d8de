from enum import Enum


class HookInstallOutcome(str, Enum):
    NO_CHANGE_NEEDED = "no-change-needed"
    INSTALLED = "installed"
    # A concurrent installer bound an equal or newer version first. Retry.
    CONFLICT = "conflict"


class CounterCreateResult(str, Enum):
    CREATED = "created"
    CONFLICT = "conflict"


class EntryType(str, Enum):
    FILE = "file"
    DIRECTORY = "dir"
