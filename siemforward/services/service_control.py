"""Service for restarting the log forwarding daemon."""
import logging
import shutil
import subprocess
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class ServiceController:
    """Restarts rsyslog through whichever service manager is available."""

    def __init__(
        self,
        service_name: str = "rsyslog",
        which: Callable[[str], Optional[str]] = shutil.which,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run
    ):
        self.service_name = service_name
        self.which = which
        self.runner = runner

    def restart_command(self) -> Optional[List[str]]:
        """Return the restart command for this host, or None if none is available."""
        if self.which('systemctl'):
            return ['systemctl', 'restart', self.service_name]
        if self.which('service'):
            return ['service', self.service_name, 'restart']
        return None

    def restart(self) -> Tuple[bool, str]:
        """
        Restart the service.

        Returns:
            Tuple of (ok, message). Failures are reported, never raised, since
            the configuration change itself already succeeded.
        """
        command = self.restart_command()
        if command is None:
            logger.warning("Neither systemctl nor service found")
            return (False, f"Could not find 'systemctl' or 'service'. "
                           f"Restart {self.service_name} manually.")

        cmd_str = ' '.join(command)
        logger.info("Running %s", cmd_str)
        try:
            completed = self.runner(command, capture_output=True, text=True)
        except OSError as e:
            logger.warning("%s failed to start: %s", cmd_str, e)
            return (False, f"Failed to restart {self.service_name} via '{cmd_str}': {e}")

        if completed.returncode != 0:
            detail = (completed.stderr or '').strip()
            logger.warning("%s exited with %s: %s", cmd_str, completed.returncode, detail)
            message = (f"Failed to restart {self.service_name} via '{cmd_str}'. "
                       f"Check the service status manually.")
            if detail:
                message += f" ({detail})"
            return (False, message)

        return (True, f"Service {self.service_name} restarted.")
