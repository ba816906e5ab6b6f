import logging
import os
import stat
import tempfile
from typing import Optional

from guest_agent.models.cpu import CpuSample, PersistedState
from guest_agent.services.cpu_stats import format_state_line, parse_cpu_line

logger = logging.getLogger(__name__)

# Used when the user id cannot be determined
FALLBACK_IDENTITY = "0"

# Invocations under other identities may need to refresh the same file
_STATE_FILE_MODE = 0o666

# A valid state line is "cpu" and eight counters, far below this
_MAX_STATE_LINE = 256


def current_identity() -> str:
    """Return the numeric user id of the caller as a string."""
    try:
        return str(os.getuid())
    except (AttributeError, OSError) as exc:
        logger.debug("User id lookup failed, using %s: %s", FALLBACK_IDENTITY, exc)
        return FALLBACK_IDENTITY


class StateStore:
    """Single-slot storage of the last CpuSample per identity."""

    def load(self, identity: str) -> Optional[PersistedState]:
        raise NotImplementedError

    def store(self, identity: str, sample: CpuSample) -> None:
        raise NotImplementedError


class FileStateStore(StateStore):
    """
    Keep each identity's last sample in one plain text file.

    The file holds a single line, "cpu" followed by the eight counters, and
    its mtime is the sample timestamp. Writes go through a temporary file in
    the same directory followed by os.replace, so readers see either the old
    or the new line, never a partial one. No locking: concurrent writers
    simply overwrite each other.
    """

    def __init__(self, directory: str, prefix: str = "pvy_cpu_stats") -> None:
        self.directory = directory
        self.prefix = prefix

    def path_for(self, identity: str) -> str:
        return os.path.join(self.directory, f"{self.prefix}_{identity}")

    def load(self, identity: str) -> Optional[PersistedState]:
        path = self.path_for(identity)
        # The state directory is shared: refuse symlinks and never block on
        # a FIFO planted at the state path
        try:
            fd = os.open(path, os.O_RDONLY | os.O_NOFOLLOW | os.O_NONBLOCK)
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.debug("Cannot open CPU state %s: %s", path, exc)
            return None

        try:
            info = os.fstat(fd)
            if not stat.S_ISREG(info.st_mode):
                logger.debug("CPU state %s is not a regular file", path)
                return None
            handle = os.fdopen(fd, "r", encoding="utf-8")
            fd = None
            with handle:
                line = handle.readline(_MAX_STATE_LINE)
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Cannot read CPU state %s: %s", path, exc)
            return None
        finally:
            if fd is not None:
                os.close(fd)

        if len(line) >= _MAX_STATE_LINE and not line.endswith("\n"):
            logger.debug("CPU state %s has an oversized first line", path)
            return None

        modified_at = info.st_mtime
        if not line.strip():
            logger.debug("CPU state %s is empty", path)
            return None

        return PersistedState(sample=parse_cpu_line(line), modified_at=modified_at)

    def store(self, identity: str, sample: CpuSample) -> None:
        path = self.path_for(identity)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.directory, prefix=f".{self.prefix}_{identity}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(format_state_line(sample))
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(tmp_path, _STATE_FILE_MODE)
            os.replace(tmp_path, path)
        except OSError:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise
