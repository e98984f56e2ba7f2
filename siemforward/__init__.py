"""siemforward - rsyslog forwarding to remote SIEM collectors."""
__version__ = "1.0.0"

from siemforward.core.exceptions import (
    SiemForwardError,
    ConfigurationError,
    ValidationError,
    BlockManagerError
)

__all__ = [
    '__version__',
    'SiemForwardError',
    'ConfigurationError',
    'ValidationError',
    'BlockManagerError'
]
