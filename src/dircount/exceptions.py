from __future__ import annotations


class DirCountException(Exception): ...


class InvalidConfigException(DirCountException): ...


class InvalidIdentifier(DirCountException):
    """
    A table, hook or function name is malformed or does not refer to an
    existing database object.
    """

    ...


class ImplementationNotFound(InvalidIdentifier):
    """
    The trigger function to bind does not exist. Implementations must be
    defined before they are installed.
    """

    ...


class HookInstallConflict(DirCountException):
    """
    Concurrent installers kept winning the race for the same hook until the
    retry bound was exhausted.
    """

    ...


class CounterRetryExhausted(DirCountException):
    """
    The counter creation loop exceeded its bound. Every lost race implies that
    a competitor made progress, so this indicates a defect rather than load.
    """

    def __init__(self, directory: str, attempts: int):
        self.directory = directory
        self.attempts = attempts
        super().__init__(
            f"Could not update the count of '{directory}' after {attempts} attempts"
        )


class DirectoryCountInvariantViolation(DirCountException):
    """
    A removal event was received for a directory without a counter row.
    The membership invariant was broken upstream.
    """

    def __init__(self, directory: str):
        self.directory = directory
        super().__init__(f"No directory count exists for '{directory}'")
