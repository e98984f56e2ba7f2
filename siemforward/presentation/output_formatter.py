"""Output formatting for CLI commands with JSON and human-readable support."""
import json
from typing import Any, Dict, List, Optional

from siemforward.core.exceptions import SiemForwardError, BlockManagerError, RestoreFailedError
from siemforward.core.models import EndpointIdentity, OperationResult

RULE = "━" * 53


class OutputFormatter:
    """Handles formatting of output in JSON or human-readable format."""

    def __init__(self, json_mode: bool = False):
        """
        Initialize the output formatter.

        Args:
            json_mode: If True, output JSON format. If False, human-readable format.
        """
        self.json_mode = json_mode

    def format_result(
        self,
        result: OperationResult,
        restart: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Format the outcome of an install or uninstall.

        Args:
            result: OperationResult returned by the block manager.
            restart: Optional {'ok': bool, 'message': str} from the service restart.

        Returns:
            Formatted string (JSON or human-readable).
        """
        if self.json_mode:
            data = result.to_dict()
            data['restart'] = restart
            return json.dumps(data, indent=2)

        lines = []
        if restart is not None:
            lines.append(restart['message'])
        elif not result.needs_reload:
            lines.append("No changes made that require restarting rsyslog.")

        lines.append(RULE)
        if result.action == 'install':
            lines.append(f"SIEM forwarding for {result.identity} in '{result.config_path}' configured!")
        elif result.changed:
            lines.append(f"SIEM forwarding for {result.identity} removed from '{result.config_path}'.")
        else:
            lines.append(f"Nothing to remove for {result.identity}.")
        if result.backup_path:
            lines.append(f"Previous configuration backed up to: {result.backup_path}")
        lines.append(RULE)
        return "\n".join(lines)

    def format_identities(self, config_path: str, identities: List[EndpointIdentity]) -> str:
        """Format the endpoints configured in a file."""
        if self.json_mode:
            return json.dumps({
                'config_path': config_path,
                'endpoints': [i.to_dict() for i in identities]
            }, indent=2)

        if not identities:
            return f"No SIEM endpoints configured in '{config_path}'."

        lines = [
            "SIEM ENDPOINTS",
            RULE,
            f"{'ADDRESS':<20} {'PORT'}",
            "─" * 53,
        ]
        for identity in identities:
            lines.append(f"{identity.address:<20} {identity.port}")
        lines.append("─" * 53)
        lines.append(f"{len(identities)} endpoint(s) in '{config_path}'")
        return "\n".join(lines)

    def format_settings(self, settings: Dict[str, Any], settings_file: str) -> str:
        """Format tool settings."""
        if self.json_mode:
            return json.dumps(dict(settings, settings_file=settings_file), indent=2)

        lines = [
            "SETTINGS",
            RULE,
            f"Settings file: {settings_file}",
            f"Config path:   {settings['config_path']}",
            "Selectors:",
        ]
        for selector in settings['selectors']:
            lines.append(f"  {selector}")
        lines.append(RULE)
        return "\n".join(lines)

    def format_error(self, error: SiemForwardError) -> str:
        """Format an error, including the backup path when one exists."""
        backup_path = getattr(error, 'backup_path', None)
        if self.json_mode:
            return json.dumps({
                'error': type(error).__name__,
                'message': str(error),
                'backup_path': backup_path,
                'critical': isinstance(error, RestoreFailedError)
            }, indent=2)

        lines = [f"Error: {error}"]
        if isinstance(error, RestoreFailedError) and error.original is not None:
            lines.append(f"Original failure: {error.original}")
        if isinstance(error, BlockManagerError) and backup_path:
            lines.append(f"Backup of the previous configuration: {backup_path}")
        return "\n".join(lines)
