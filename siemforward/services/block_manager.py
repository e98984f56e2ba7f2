"""Management of delimited SIEM forwarding blocks in an rsyslog config file."""
import logging
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

from siemforward.core.exceptions import (
    BlockManagerError, MissingDirectoryError, BackupError, WriteError,
    BlockRemovalError, CorruptBlockError, RestoreFailedError
)
from siemforward.core.models import (
    EndpointIdentity, ForwardingBlock, OperationResult, Outcome
)
from siemforward.utils.validators import (
    validate_protocol_prefix, validate_selectors
)

logger = logging.getLogger(__name__)

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
DEFAULT_FILE_MODE = 0o644

# Bytes that are not valid UTF-8 round-trip unchanged through surrogates.
FILE_ENCODING = 'utf-8'
FILE_ERRORS = 'surrogateescape'


def split_lines(text: str) -> List[str]:
    """Split on "\n" only, so "\r" and other separators stay inside their line."""
    if not text:
        return []
    if text.endswith("\n"):
        text = text[:-1]
    return text.split("\n")


def normalize_blank_lines(lines: Sequence[str]) -> List[str]:
    """Collapse runs of empty lines to one and strip leading/trailing ones."""
    normalized = []
    for line in lines:
        if line == "" and normalized and normalized[-1] == "":
            continue
        normalized.append(line)
    if normalized and normalized[0] == "":
        normalized.pop(0)
    if normalized and normalized[-1] == "":
        normalized.pop()
    return normalized


class BlockManager:
    """Creates, replaces and removes forwarding blocks in one config file.

    Every mutating operation snapshots the file first and puts it back if a
    write fails. Status lines are collected on the returned result, logged,
    and passed to ``reporter`` as they happen when one is given.
    """

    def __init__(
        self,
        config_path: Union[str, Path],
        reporter: Optional[Callable[[str], None]] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.config_path = Path(config_path)
        self.reporter = reporter
        self.clock = clock

    def _note(self, notes: List[str], message: str):
        notes.append(message)
        logger.info(message)
        if self.reporter:
            self.reporter(message)

    def _read_text(self) -> Optional[str]:
        """Return the file content, or None if the file does not exist."""
        if not self.config_path.exists():
            return None
        try:
            with open(self.config_path, 'r', encoding=FILE_ENCODING,
                      errors=FILE_ERRORS, newline='') as f:
                return f.read()
        except (OSError, UnicodeError) as exc:
            raise BlockManagerError(
                f"Failed to read '{self.config_path}': {exc}",
                config_path=str(self.config_path)
            ) from exc

    def _write_lines(self, lines: Sequence[str]):
        """Replace the file content through a temporary file in the same directory."""
        content = "\n".join(lines) + "\n" if lines else ""
        directory = self.config_path.parent
        fd, tmp_name = tempfile.mkstemp(
            dir=str(directory), prefix=f".{self.config_path.name}.", suffix=".tmp"
        )
        replaced = False
        try:
            with os.fdopen(fd, 'w', encoding=FILE_ENCODING, errors=FILE_ERRORS, newline='') as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            if self.config_path.exists():
                shutil.copymode(str(self.config_path), tmp_name)
            else:
                os.chmod(tmp_name, DEFAULT_FILE_MODE)
            os.replace(tmp_name, str(self.config_path))
            replaced = True
        finally:
            if not replaced:
                try:
                    os.unlink(tmp_name)
                except FileNotFoundError:
                    pass

    def _backup_path(self) -> Path:
        stamp = self.clock().strftime(BACKUP_TIMESTAMP_FORMAT)
        candidate = Path(f"{self.config_path}.bak_{stamp}")
        counter = 1
        while candidate.exists():
            candidate = Path(f"{self.config_path}.bak_{stamp}_{counter}")
            counter += 1
        return candidate

    def _create_backup(self, notes: List[str]) -> str:
        backup_path = self._backup_path()
        self._note(notes, f"Creating backup of '{self.config_path}' at '{backup_path}'...")
        try:
            shutil.copy2(str(self.config_path), str(backup_path))
        except OSError as exc:
            logger.error("Backup of %s failed: %s", self.config_path, exc)
            raise BackupError(
                f"Failed to create backup file '{backup_path}': {exc}",
                config_path=str(self.config_path)
            ) from exc
        self._note(notes, f"Backup created at '{backup_path}'.")
        return str(backup_path)

    def _restore_from_backup(self, backup_path: str, error: BaseException):
        logger.warning("Restoring %s from %s after: %s", self.config_path, backup_path, error)
        try:
            shutil.copy2(backup_path, str(self.config_path))
        except OSError as exc:
            logger.critical(
                "Restore of %s from %s failed: %s", self.config_path, backup_path, exc
            )
            raise RestoreFailedError(
                f"Critical: failed to restore '{self.config_path}' from backup "
                f"'{backup_path}' ({exc}). The file may be inconsistent.",
                original=error,
                config_path=str(self.config_path),
                backup_path=backup_path
            ) from exc
        logger.info("Restored %s from %s", self.config_path, backup_path)

    def _restore_snapshot(self, snapshot: str, error: BaseException):
        logger.warning("Restoring %s from in-memory snapshot after: %s", self.config_path, error)
        try:
            with open(self.config_path, 'w', encoding=FILE_ENCODING,
                      errors=FILE_ERRORS, newline='') as f:
                f.write(snapshot)
        except (OSError, UnicodeError) as exc:
            logger.critical("Restore of %s from snapshot failed: %s", self.config_path, exc)
            raise RestoreFailedError(
                f"Critical: failed to restore '{self.config_path}' ({exc}). "
                "The file may be inconsistent.",
                original=error,
                config_path=str(self.config_path)
            ) from exc

    def find_block(
        self, lines: Sequence[str], identity: EndpointIdentity
    ) -> Optional[Tuple[int, int]]:
        """
        Locate the block for ``identity``.

        Markers only match whole lines, so rule lines that mention the same
        address never count.

        Returns:
            Inclusive (begin, end) line indexes, or None if there is no begin marker.

        Raises:
            CorruptBlockError: begin marker present without a later end marker.
        """
        begin_marker = identity.begin_marker
        end_marker = identity.end_marker
        for start, line in enumerate(lines):
            if line != begin_marker:
                continue
            for end in range(start + 1, len(lines)):
                if lines[end] == end_marker:
                    return start, end
            raise CorruptBlockError(
                f"Block for {identity} in '{self.config_path}' has no end marker "
                f"(line {start + 1}). Fix the file manually.",
                config_path=str(self.config_path)
            )
        return None

    def list_identities(self) -> List[EndpointIdentity]:
        """Endpoints with a begin marker in the file, in file order."""
        text = self._read_text()
        if text is None:
            return []
        identities = []
        for line in split_lines(text):
            identity = EndpointIdentity.from_begin_marker(line)
            if identity is not None:
                identities.append(identity)
        return identities

    def _remove_block(
        self,
        identity: EndpointIdentity,
        snapshot: str,
        notes: List[str],
        backup_path: Optional[str] = None
    ) -> bool:
        lines = split_lines(snapshot)
        span = self.find_block(lines, identity)
        if span is None:
            self._note(notes, f"No existing block for {identity} in '{self.config_path}'.")
            return False

        start, end = span
        self._note(notes, f"Removing existing block for {identity}...")
        remaining = normalize_blank_lines(list(lines[:start]) + list(lines[end + 1:]))
        try:
            self._write_lines(remaining)
        except (OSError, UnicodeError) as exc:
            logger.error("Removing block %s from %s failed: %s", identity, self.config_path, exc)
            if backup_path:
                self._restore_from_backup(backup_path, exc)
                self._note(notes, f"Restored '{self.config_path}' from '{backup_path}'.")
            else:
                self._restore_snapshot(snapshot, exc)
            raise BlockRemovalError(
                f"Failed to remove block for {identity} from '{self.config_path}': {exc}",
                config_path=str(self.config_path),
                backup_path=backup_path
            ) from exc
        self._note(notes, f"Block for {identity} removed.")
        return True

    def _append_block(
        self, block: ForwardingBlock, notes: List[str], backup_path: Optional[str]
    ):
        lines = split_lines(self._read_text() or "")
        while lines and lines[-1] == "":
            lines.pop()
        if lines:
            lines.append("")
        lines.extend(block.render())

        self._note(notes, f"Adding block for {block.identity}...")
        try:
            self._write_lines(lines)
        except (OSError, UnicodeError) as exc:
            logger.error("Appending block %s to %s failed: %s", block.identity, self.config_path, exc)
            if backup_path:
                self._restore_from_backup(backup_path, exc)
                self._note(notes, f"Restored '{self.config_path}' from '{backup_path}'.")
            raise WriteError(
                f"Failed to add block for {block.identity} to '{self.config_path}': {exc}",
                config_path=str(self.config_path),
                backup_path=backup_path
            ) from exc
        self._note(notes, f"Block for {block.identity} added to '{self.config_path}'.")

    def ensure_absent(self, identity: EndpointIdentity) -> OperationResult:
        """Remove the block for ``identity`` if there is one."""
        notes: List[str] = []
        snapshot = self._read_text()
        if snapshot is None:
            self._note(notes, f"'{self.config_path}' not found. Nothing to remove.")
            removed = False
        else:
            removed = self._remove_block(identity, snapshot, notes)
        return OperationResult(
            action='ensure_absent',
            identity=identity,
            outcome=Outcome.CHANGED if removed else Outcome.NO_OP,
            config_path=str(self.config_path),
            messages=notes
        )

    def install(
        self,
        identity: EndpointIdentity,
        protocol_prefix: str,
        selectors: Sequence[str]
    ) -> OperationResult:
        """
        Install or replace the forwarding block for ``identity``.

        Any existing block for the same endpoint is removed first and the new
        block is appended at the end of the file.

        Args:
            identity: Collector address and port
            protocol_prefix: '@' for UDP, '@@' for TCP
            selectors: rsyslog selectors, one rule line each, in order

        Returns:
            OperationResult with outcome CHANGED

        Raises:
            MissingDirectoryError, BackupError, CorruptBlockError,
            BlockRemovalError, WriteError, RestoreFailedError
        """
        validate_protocol_prefix(protocol_prefix)
        validate_selectors(selectors)
        notes: List[str] = []

        directory = self.config_path.parent
        if not directory.is_dir():
            raise MissingDirectoryError(
                f"Configuration directory '{directory}' not found.",
                config_path=str(self.config_path)
            )

        backup_path = None
        created = False
        if not self.config_path.exists():
            self._note(notes, f"'{self.config_path}' not found. Creating...")
            try:
                self.config_path.touch(mode=DEFAULT_FILE_MODE)
                os.chmod(str(self.config_path), DEFAULT_FILE_MODE)
            except OSError as exc:
                raise WriteError(
                    f"Failed to create '{self.config_path}': {exc}",
                    config_path=str(self.config_path)
                ) from exc
            created = True
            self._note(notes, f"'{self.config_path}' created.")
        else:
            self._note(notes, f"Configuration file '{self.config_path}' found.")
            backup_path = self._create_backup(notes)

        block = ForwardingBlock(identity, protocol_prefix, list(selectors))
        try:
            self._remove_block(identity, self._read_text() or "", notes, backup_path=backup_path)
            self._append_block(block, notes, backup_path)
        except BlockManagerError as exc:
            if exc.backup_path is None:
                exc.backup_path = backup_path
            raise

        return OperationResult(
            action='install',
            identity=identity,
            outcome=Outcome.CHANGED,
            config_path=str(self.config_path),
            backup_path=backup_path,
            file_created=created,
            messages=notes
        )

    def uninstall(self, identity: EndpointIdentity) -> OperationResult:
        """
        Remove the forwarding block for ``identity``.

        A missing file or missing block is a no-op: nothing is written and no
        backup is taken. The file is deleted if nothing is left in it.
        """
        notes: List[str] = []
        snapshot = self._read_text()
        if snapshot is None:
            self._note(notes, f"'{self.config_path}' not found. Nothing to remove.")
            return self._no_op('uninstall', identity, notes)

        self._note(notes, f"Configuration file '{self.config_path}' found.")
        if self.find_block(split_lines(snapshot), identity) is None:
            self._note(notes, f"No block for {identity} in '{self.config_path}'. Nothing to remove.")
            return self._no_op('uninstall', identity, notes)

        backup_path = self._create_backup(notes)
        try:
            self._remove_block(identity, snapshot, notes, backup_path=backup_path)
        except BlockManagerError as exc:
            if exc.backup_path is None:
                exc.backup_path = backup_path
            raise

        removed_file = False
        if self.config_path.stat().st_size == 0:
            self._note(notes, f"'{self.config_path}' is empty after removal. Deleting it...")
            try:
                self.config_path.unlink()
                removed_file = True
                self._note(notes, f"Empty file '{self.config_path}' deleted.")
            except OSError as exc:
                logger.warning("Could not delete empty %s: %s", self.config_path, exc)
                self._note(notes, f"Warning: failed to delete empty file '{self.config_path}'.")

        return OperationResult(
            action='uninstall',
            identity=identity,
            outcome=Outcome.CHANGED,
            config_path=str(self.config_path),
            backup_path=backup_path,
            file_removed=removed_file,
            messages=notes
        )

    def _no_op(self, action: str, identity: EndpointIdentity, notes: List[str]) -> OperationResult:
        return OperationResult(
            action=action,
            identity=identity,
            outcome=Outcome.NO_OP,
            config_path=str(self.config_path),
            messages=notes
        )
