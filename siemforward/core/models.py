"""Domain models for forwarding blocks and operation results."""
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

BEGIN_MARKER_PREFIX = "# BEGIN SIEM CONFIG FOR "
END_MARKER_PREFIX = "# END SIEM CONFIG FOR "

_BEGIN_MARKER_RE = re.compile(r'^# BEGIN SIEM CONFIG FOR (\S+):(\d+)$')


class Protocol(Enum):
    """Transport used to reach the collector."""
    UDP = 'udp'
    TCP = 'tcp'

    @property
    def prefix(self) -> str:
        """rsyslog action prefix: '@' for datagram, '@@' for stream."""
        return '@@' if self is Protocol.TCP else '@'


class Outcome(Enum):
    CHANGED = 'changed'
    NO_OP = 'no_op'


@dataclass(frozen=True)
class EndpointIdentity:
    """Address and port of a remote collector. Keys one forwarding block."""
    address: str
    port: int

    def __str__(self) -> str:
        return f"{self.address}:{self.port}"

    @property
    def begin_marker(self) -> str:
        return f"{BEGIN_MARKER_PREFIX}{self}"

    @property
    def end_marker(self) -> str:
        return f"{END_MARKER_PREFIX}{self}"

    @classmethod
    def from_begin_marker(cls, line: str) -> Optional['EndpointIdentity']:
        """Parse a begin marker line, or return None if the line is not one."""
        match = _BEGIN_MARKER_RE.match(line)
        if not match:
            return None
        return cls(address=match.group(1), port=int(match.group(2)))

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {'address': self.address, 'port': self.port}


@dataclass
class ForwardingBlock:
    """Delimited run of rule lines forwarding to one endpoint."""
    identity: EndpointIdentity
    protocol_prefix: str
    selectors: List[str]

    def rule_lines(self) -> List[str]:
        return [
            f"{selector} {self.protocol_prefix}{self.identity}"
            for selector in self.selectors
        ]

    def render(self) -> List[str]:
        """Return the block as file lines, markers included."""
        return [self.identity.begin_marker] + self.rule_lines() + [self.identity.end_marker]


@dataclass
class OperationResult:
    """What a block manager operation did to the configuration file."""
    action: str
    identity: EndpointIdentity
    outcome: Outcome
    config_path: str
    backup_path: Optional[str] = None
    file_created: bool = False
    file_removed: bool = False
    messages: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.outcome is Outcome.CHANGED

    @property
    def needs_reload(self) -> bool:
        """Only a changed file warrants restarting the log service."""
        return self.changed

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'action': self.action,
            'endpoint': self.identity.to_dict(),
            'outcome': self.outcome.value,
            'config_path': self.config_path,
            'backup_path': self.backup_path,
            'file_created': self.file_created,
            'file_removed': self.file_removed,
            'messages': list(self.messages)
        }
