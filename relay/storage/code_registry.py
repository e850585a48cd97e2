"""
Durable mapping from retrieval code to artifact.

The registry is a single JSON document. Every mutation runs the whole
load -> mutate -> persist cycle under one lock so concurrent writers never act
on a stale snapshot; persisting goes through a temporary file and
``os.replace`` so readers never observe a half-written document.
"""

import json
import os
import shutil
import tempfile
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

from common.constants import RETENTION_WINDOW_SECONDS
from common.logging_config import get_logger
from relay.exceptions import CodeNotFoundError, RegistryIOError

logger = get_logger(__name__)


@dataclass(frozen=True)
class RegistryEntry:
    """
    One live retrieval code.

    Attributes:
        code: Retrieval code
        artifact_name: Name of the artifact the code resolves to
        created_at: Epoch seconds when the code was registered
    """
    code: str
    artifact_name: str
    created_at: float

    def expires_at(self, window: float = RETENTION_WINDOW_SECONDS) -> float:
        return self.created_at + window

    def is_expired(self, now: float, window: float = RETENTION_WINDOW_SECONDS) -> bool:
        """
        Check whether the entry is past the retention window.

        An entry exactly ``window`` seconds old is still valid.
        """
        return now - self.created_at > window

    def to_dict(self) -> Dict:
        return {"artifact_name": self.artifact_name, "created_at": self.created_at}


class CodeRegistry:
    """
    Thread-safe, file-backed code registry.
    """

    def __init__(self, registry_path: Path, clock: Callable[[], float] = time.time):
        """
        Initialize code registry.

        Args:
            registry_path: Path to the JSON registry file
            clock: Source of epoch seconds (injectable for tests)
        """
        self.registry_path = Path(registry_path)
        self.clock = clock
        self._write_lock = threading.Lock()

    def register(self, code: str, artifact_name: str) -> RegistryEntry:
        """
        Insert or overwrite the entry for ``code``.

        Args:
            code: Retrieval code
            artifact_name: Artifact the code resolves to

        Returns:
            The stored entry

        Raises:
            RegistryIOError: If the registry cannot be read or persisted
        """
        with self._write_lock:
            data = self._load()
            entry = RegistryEntry(code=code, artifact_name=artifact_name, created_at=self.clock())
            data[code] = entry.to_dict()
            self._persist(data)

        logger.info(f"Registered [code={code}] -> {artifact_name}")
        return entry

    def register_new(self, code: str, artifact_name: str) -> Optional[RegistryEntry]:
        """
        Insert an entry only if ``code`` is not already registered.

        Returns:
            The stored entry, or None if the code is taken

        Raises:
            RegistryIOError: If the registry cannot be read or persisted
        """
        with self._write_lock:
            data = self._load()
            if code in data:
                logger.debug(f"Code collision [code={code}]")
                return None
            entry = RegistryEntry(code=code, artifact_name=artifact_name, created_at=self.clock())
            data[code] = entry.to_dict()
            self._persist(data)

        logger.info(f"Registered [code={code}] -> {artifact_name}")
        return entry

    def resolve(self, code: str) -> RegistryEntry:
        """
        Look up a code. Does not check expiry.

        Raises:
            CodeNotFoundError: If the code is not registered
            RegistryIOError: If the registry cannot be read
        """
        record = self._load().get(code)
        if record is None:
            raise CodeNotFoundError(f"Unknown retrieval code [code={code}]")
        return _entry_from_record(code, record)

    def remove(self, code: str, created_at: Optional[float] = None) -> bool:
        """
        Remove an entry. Succeeds whether or not the code exists.

        Args:
            code: Retrieval code
            created_at: When given, only remove if the stored entry still has
                this timestamp (it was not re-registered since it was read)

        Returns:
            True if an entry was removed

        Raises:
            RegistryIOError: If the registry cannot be read or persisted
        """
        with self._write_lock:
            data = self._load()
            record = data.get(code)
            if record is None:
                return False
            if created_at is not None and record.get("created_at") != created_at:
                return False
            del data[code]
            self._persist(data)

        logger.info(f"Removed [code={code}]")
        return True

    def list_all(self) -> List[RegistryEntry]:
        """
        Snapshot every entry in the registry.
        """
        return [_entry_from_record(code, record) for code, record in self._load().items()]

    def __contains__(self, code: str) -> bool:
        return code in self._load()

    def _load(self) -> Dict[str, Dict]:
        """
        Read the registry document.

        A missing file is an empty registry. A corrupt file is copied aside to
        ``.bak`` and treated as empty so the service keeps working. Malformed
        entries inside an otherwise valid document are dropped the same way.

        Raises:
            RegistryIOError: If the file exists but cannot be read
        """
        try:
            with open(self.registry_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.error(f"Failed to read registry {self.registry_path}: {e}")
            raise RegistryIOError("Failed to read code registry") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Registry file {self.registry_path} is corrupted: {e}")
            self._backup_corrupt_file()
            return {}

        if not isinstance(data, dict):
            logger.error(f"Registry file {self.registry_path} has unexpected layout")
            self._backup_corrupt_file()
            return {}

        valid = {code: record for code, record in data.items() if _is_valid_record(record)}
        if len(valid) != len(data):
            logger.error(
                f"Registry file {self.registry_path} has {len(data) - len(valid)} "
                f"malformed entries, ignoring them"
            )
            self._backup_corrupt_file()
        return valid

    def _persist(self, data: Dict[str, Dict]) -> None:
        tmp_name = None
        try:
            self.registry_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.registry_path.parent, prefix=".code_map-", suffix=".json"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.registry_path)
            tmp_name = None
        except OSError as e:
            logger.error(f"Failed to persist registry {self.registry_path}: {e}")
            raise RegistryIOError("Failed to persist code registry") from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning(f"Failed to remove temporary registry file {tmp_name}")

    def _backup_corrupt_file(self) -> None:
        backup_path = self.registry_path.with_suffix(".json.bak")
        try:
            shutil.copy(self.registry_path, backup_path)
            logger.warning(f"Corrupted registry copied to {backup_path}")
        except OSError as e:
            logger.error(f"Failed to back up corrupted registry: {e}")


def _entry_from_record(code: str, record: Dict) -> RegistryEntry:
    return RegistryEntry(
        code=code,
        artifact_name=record["artifact_name"],
        created_at=float(record["created_at"]),
    )


def _is_valid_record(record) -> bool:
    if not isinstance(record, dict):
        return False
    created_at = record.get("created_at")
    return (
        isinstance(record.get("artifact_name"), str)
        and isinstance(created_at, (int, float))
        and not isinstance(created_at, bool)
    )
