__version__ = "0.1.0"

# Public API exports
from .cache import PathCache
from .config import (
    AppConfig,
    CacheConfig,
    ConnectionConfig,
    DriveConfig,
    LogConfig,
    load_config,
)
from .errors import (
    DriveError,
    ForbiddenError,
    InvariantViolation,
    NotFoundError,
    PermanentFetchError,
    TransientFetchError,
)
from .filesystem import DriveFile, DriveFileSystem
from .invalidation import InvalidationController, PeriodicTrigger, SignalTrigger
from .models import ROOT_ID, Entry, Listable, Metadata
from .populator import Populator
from .quark_client import QuarkDriveClient
from .remote_client import RemoteTreeClient
from .url_freshness import UrlFreshnessTracker, is_url_expired, parse_url_expiry

__all__ = [
    "__version__",
    # Configuration
    "AppConfig",
    "DriveConfig",
    "CacheConfig",
    "ConnectionConfig",
    "LogConfig",
    "load_config",
    # Model
    "ROOT_ID",
    "Entry",
    "Metadata",
    "Listable",
    # Clients
    "RemoteTreeClient",
    "QuarkDriveClient",
    # Cache
    "PathCache",
    "Populator",
    "InvalidationController",
    "PeriodicTrigger",
    "SignalTrigger",
    "UrlFreshnessTracker",
    "is_url_expired",
    "parse_url_expiry",
    # Filesystem
    "DriveFileSystem",
    "DriveFile",
    # Errors
    "DriveError",
    "NotFoundError",
    "ForbiddenError",
    "TransientFetchError",
    "PermanentFetchError",
    "InvariantViolation",
]
