"""Input validation utilities."""
import os
import re
from typing import Sequence, Union

from siemforward.core.exceptions import ValidationError, PrivilegeError

_ADDRESS_RE = re.compile(r'^(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})$')

PROTOCOL_PREFIXES = ('@', '@@')


def validate_address(address: str) -> None:
    """Validate collector address in ddd.ddd.ddd.ddd form."""
    match = _ADDRESS_RE.match(address or '')
    if not match or any(int(octet) > 255 for octet in match.groups()):
        raise ValidationError(f"IP address '{address}' looks invalid.")


def validate_port(port: Union[int, str]) -> int:
    """Validate a destination port and return it as an int."""
    try:
        value = int(str(port).strip())
    except ValueError:
        raise ValidationError(
            f"Invalid port '{port}'. Must be a number between 1 and 65535."
        )
    if not 1 <= value <= 65535:
        raise ValidationError(
            f"Invalid port '{port}'. Must be a number between 1 and 65535."
        )
    return value


def validate_protocol_prefix(prefix: str) -> None:
    """Validate rsyslog forwarding prefix."""
    if prefix not in PROTOCOL_PREFIXES:
        raise ValidationError(
            f"Invalid protocol prefix '{prefix}'. Must be '@' (UDP) or '@@' (TCP)."
        )


def validate_selectors(selectors: Sequence[str]) -> None:
    """Validate the list of rsyslog selectors to forward."""
    if not selectors:
        raise ValidationError("At least one log selector is required.")
    for selector in selectors:
        if not isinstance(selector, str) or not selector.strip():
            raise ValidationError(f"Invalid log selector: {selector!r}")
        if '\n' in selector or '\r' in selector:
            raise ValidationError(f"Log selector must be a single line: {selector!r}")


def validate_privileges() -> None:
    """Require root, since the rsyslog config and service belong to it."""
    if os.geteuid() != 0:
        raise PrivilegeError("This command must be run as root (use sudo).")
