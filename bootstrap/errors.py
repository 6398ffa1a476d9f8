from __future__ import annotations


class BootstrapError(Exception):
    pass


class StructureReadError(BootstrapError):
    """The store root could not be read during the structure check."""


class StructureWriteError(BootstrapError):
    """Writing the initial layout or the missing collections failed."""


class SeedingError(BootstrapError):
    """Reading or writing the specialty catalog failed."""


class BootstrapRecoveryError(BootstrapError):
    """The bootstrap failed and the single recovery attempt failed too."""

    def __init__(self, original: BaseException, recovery: BaseException):
        super().__init__(
            f"bootstrap failed ({type(original).__name__}: {original}); "
            f"recovery failed ({type(recovery).__name__}: {recovery})"
        )
        self.original = original
        self.recovery = recovery
