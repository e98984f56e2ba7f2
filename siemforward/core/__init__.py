"""Core domain models and exceptions."""
from siemforward.core.exceptions import (
    SiemForwardError,
    ConfigurationError,
    ValidationError,
    PrivilegeError,
    BlockManagerError,
    MissingDirectoryError,
    BackupError,
    WriteError,
    BlockRemovalError,
    CorruptBlockError,
    RestoreFailedError
)
