from .acl import Acl
from .config import AclConfig, DefaultPolicy, LogLevel, load_config_from_env
from .entry import Entry, RootEntry, SimpleEntry, entry_id
from .exceptions import (
    ArchlyError,
    ConfigurationError,
    CyclicHierarchyError,
    DuplicateEntryError,
    EntryNotFoundError,
    NilEntryError,
    NonEmptyError,
)
from .logging import (
    AclFormatter,
    AclLoggerAdapter,
    get_acl_logger,
    safe_preview,
    setup_logging,
)
from .models import AclSnapshot
from .permissions import (
    DEFAULT_KEY,
    KEY_SEPARATOR,
    WILDCARD,
    Access,
    Action,
    PermissionMatrix,
)
from .registry import Registry, format_path

__all__ = [
    'Acl',
    'AclConfig',
    'DefaultPolicy',
    'LogLevel',
    'load_config_from_env',
    'Entry',
    'RootEntry',
    'SimpleEntry',
    'entry_id',
    'ArchlyError',
    'ConfigurationError',
    'CyclicHierarchyError',
    'DuplicateEntryError',
    'EntryNotFoundError',
    'NilEntryError',
    'NonEmptyError',
    'AclFormatter',
    'AclLoggerAdapter',
    'get_acl_logger',
    'safe_preview',
    'setup_logging',
    'AclSnapshot',
    'DEFAULT_KEY',
    'KEY_SEPARATOR',
    'WILDCARD',
    'Access',
    'Action',
    'PermissionMatrix',
    'Registry',
    'format_path',
]
