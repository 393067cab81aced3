"""steering-frameworks - Install, update, search and validate steering framework documents.

Public API exports.

Library mechanism only: hosts inject policy (workspace and resource paths,
limits) through FrameworkSettings and handle all user interaction.
"""

from .catalog import FrameworkCatalog
from .config import FrameworkSettings
from .customization import CustomizationDetector
from .discovery import SteeringDocument
from .discovery import SteeringDocuments
from .discovery import discover_steering_documents
from .exceptions import FrameworkConflictError
from .exceptions import FrameworkError
from .exceptions import FrameworkIOError
from .exceptions import FrameworkNotFoundError
from .exceptions import FrameworkNotInstalledError
from .exceptions import LedgerCorruptError
from .exceptions import ManifestCorruptError
from .exceptions import SearchQueryError
from .exceptions import UpdateRefusedError
from .filesystem import LocalFileSystem
from .installer import ConflictResolution
from .installer import FrameworkInstaller
from .installer import InstallOutcome
from .installer import InstallResult
from .ledger import FrameworkLedger
from .ledger import InstalledRecord
from .manager import FrameworkManager
from .protocols import FileSystemProtocol
from .schema import FrameworkCategory
from .schema import FrameworkDescriptor
from .schema import FrameworkManifest
from .schema import SemanticVersion
from .search import FrameworkSearchEngine
from .search import SearchResult
from .search import SearchResultKind
from .updater import BatchUpdateResult
from .updater import FrameworkUpdate
from .updater import FrameworkUpdater
from .updater import UpdateOutcome
from .updater import UpdateResolution
from .updater import UpdateResult
from .utils import content_hash
from .validator import IssueKind
from .validator import IssueSeverity
from .validator import QualityRule
from .validator import SteeringValidator
from .validator import TextRange
from .validator import ValidationIssue
from .validator import ValidationResult

__all__ = [
    # Facade
    "FrameworkManager",
    "FrameworkSettings",
    # Catalog
    "FrameworkCatalog",
    "FrameworkCategory",
    "FrameworkDescriptor",
    "FrameworkManifest",
    "SemanticVersion",
    # Ledger
    "FrameworkLedger",
    "InstalledRecord",
    "CustomizationDetector",
    # Installation
    "FrameworkInstaller",
    "ConflictResolution",
    "InstallOutcome",
    "InstallResult",
    # Updates
    "FrameworkUpdater",
    "FrameworkUpdate",
    "UpdateResolution",
    "UpdateOutcome",
    "UpdateResult",
    "BatchUpdateResult",
    # Search
    "FrameworkSearchEngine",
    "SearchResult",
    "SearchResultKind",
    # Validation
    "SteeringValidator",
    "QualityRule",
    "ValidationResult",
    "ValidationIssue",
    "IssueSeverity",
    "IssueKind",
    "TextRange",
    # Discovery
    "SteeringDocument",
    "SteeringDocuments",
    "discover_steering_documents",
    # File system
    "FileSystemProtocol",
    "LocalFileSystem",
    # Exceptions
    "FrameworkError",
    "FrameworkNotFoundError",
    "FrameworkNotInstalledError",
    "FrameworkConflictError",
    "FrameworkIOError",
    "LedgerCorruptError",
    "ManifestCorruptError",
    "SearchQueryError",
    "UpdateRefusedError",
    # Utilities
    "content_hash",
]

__version__ = "0.1.0"
