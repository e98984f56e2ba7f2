"""Custom exceptions for the application."""
from typing import Optional


class SiemForwardError(Exception):
    """Base exception for all siemforward errors."""
    pass


class ConfigurationError(SiemForwardError):
    """Raised when tool settings are missing or invalid."""
    pass


class ValidationError(SiemForwardError):
    """Raised when input validation fails."""
    pass


class PrivilegeError(ValidationError):
    """Raised when the tool is not running as root."""
    pass


class BlockManagerError(SiemForwardError):
    """Raised when a forwarding block cannot be managed safely."""

    def __init__(self, message: str, config_path: Optional[str] = None,
                 backup_path: Optional[str] = None):
        super().__init__(message)
        self.config_path = config_path
        self.backup_path = backup_path


class MissingDirectoryError(BlockManagerError):
    """Raised when the configuration directory does not exist."""
    pass


class BackupError(BlockManagerError):
    """Raised when the pre-edit backup cannot be written."""
    pass


class WriteError(BlockManagerError):
    """Raised when a new block cannot be appended."""
    pass


class BlockRemovalError(BlockManagerError):
    """Raised when an existing block cannot be removed."""
    pass


class CorruptBlockError(BlockManagerError):
    """Raised when a begin marker has no matching end marker."""
    pass


class RestoreFailedError(BlockManagerError):
    """Raised when restoring the configuration after a failure also fails.

    The configuration file may be inconsistent; ``original`` holds the
    failure that triggered the restore.
    """

    def __init__(self, message: str, original: Optional[BaseException] = None,
                 config_path: Optional[str] = None,
                 backup_path: Optional[str] = None):
        super().__init__(message, config_path=config_path, backup_path=backup_path)
        self.original = original
