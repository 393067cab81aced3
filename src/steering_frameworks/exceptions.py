"""Framework lifecycle exceptions.

Every error names the affected framework or path and keeps the underlying
error text, so callers can act on it without re-deriving context.
"""


class FrameworkError(Exception):
    """Base exception for framework operations."""

    def __init__(self, message: str, context: dict | None = None):
        """Initialize with message and optional context.

        Args:
            message: Human-readable error message
            context: Optional dict with additional context (framework_id, path, etc.)
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class FrameworkNotFoundError(FrameworkError):
    """Framework id not present in the catalog."""


class FrameworkNotInstalledError(FrameworkNotFoundError):
    """Framework exists in the catalog but is not installed in the workspace."""


class ManifestCorruptError(FrameworkError):
    """Manifest could not be parsed or failed schema validation."""


class LedgerCorruptError(FrameworkError):
    """Installed-frameworks ledger could not be parsed.

    Never handled by regenerating an empty ledger; recovery goes through
    FrameworkLedger.reset(acknowledge_data_loss=True).
    """


class FrameworkConflictError(FrameworkError):
    """Existing content diverges from what the ledger expects.

    Raised before any mutation when the caller has not supplied a resolution.
    """


class UpdateRefusedError(FrameworkError):
    """Catalog version is not strictly newer than the installed version."""


class SearchQueryError(FrameworkError):
    """Search query rejected (too long)."""


class FrameworkIOError(FrameworkError):
    """File system operation failed.

    Wraps the OS error; `errno` and `strerror` keep the original code and text.
    """

    def __init__(
        self,
        message: str,
        context: dict | None = None,
        errno: int | None = None,
        strerror: str | None = None,
    ):
        super().__init__(message, context)
        self.errno = errno
        self.strerror = strerror
