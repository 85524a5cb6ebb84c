"""
Storage Module - Flat JSON key file storage.

Keeps the key list in a pretty-printed JSON array on disk (a ".key"
file), by default ~/.ai_key_manager/default.key.
"""

import json
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

from ai_key_manager.adapters import ExtractionError, JsonAdapter
from ai_key_manager.exporter import keys_to_json
from ai_key_manager.logger import AuditLogger
from ai_key_manager.records import ApiKey


DEFAULT_KEY_FILENAME = "default.key"


class StorageError(Exception):
    """Base exception for storage errors."""
    pass


def parse_key_file(content: str, logger: Optional[AuditLogger] = None) -> list[ApiKey]:
    """
    Parse the content of a key file.

    A JSON array of stored records (first element carrying an "id") is
    read record by record. Elements that are not objects or lack a name
    or value are skipped, and logged when a logger is given. Anything
    else is read like an imported JSON document.

    Raises:
        ExtractionError: If the content is not valid JSON
    """
    try:
        parsed = json.loads(content)
    except ValueError as e:
        raise ExtractionError(f"Invalid key file: {e}") from e

    if not (isinstance(parsed, list) and parsed and isinstance(parsed[0], dict) and "id" in parsed[0]):
        return JsonAdapter().parse(content)

    keys = []
    for index, item in enumerate(parsed):
        try:
            if not isinstance(item, dict):
                raise ValueError("Key record is not an object")
            keys.append(ApiKey.from_dict(item))
        except ValueError as e:
            if logger:
                logger.log_warning("Skipped malformed key record", index=index, error=str(e))
    return keys


class KeyStore:
    """
    Stores the key list as a JSON array in a key file.

    The store does not cache: load() reads the file and save() replaces
    it wholesale. A key file that cannot be read is copied to the
    backups directory before anything is written over it.
    """

    def __init__(
        self,
        storage_dir: Optional[str] = None,
        key_file: Optional[str] = None,
        logger: Optional[AuditLogger] = None
    ):
        """
        Initialize the key store.

        Args:
            storage_dir: Directory holding key files. Defaults to ~/.ai_key_manager
            key_file: Key file to use. Defaults to default.key in storage_dir
            logger: AuditLogger instance for logging
        """
        if storage_dir is None:
            storage_dir = os.path.join(os.path.expanduser("~"), ".ai_key_manager")

        self.storage_dir = Path(storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        self.backup_dir = self.storage_dir / "backups"

        # Set restrictive permissions on storage directory
        try:
            os.chmod(self.storage_dir, 0o700)
        except OSError:
            pass  # May fail on some systems

        self.key_path = Path(key_file) if key_file else self.storage_dir / DEFAULT_KEY_FILENAME
        self.logger = logger or AuditLogger(log_dir=str(self.storage_dir / "logs"))

        # Set when the key file could not be loaded
        self.backup_path: Optional[Path] = None
        self._protected = False

    @property
    def key_filename(self) -> str:
        return self.key_path.name

    def exists(self) -> bool:
        return self.key_path.exists()

    def load(self) -> list[ApiKey]:
        """
        Load all keys from the key file.

        A missing file is an empty store. An unreadable or corrupt file is
        logged, backed up and treated as empty so the caller can start over.
        If the backup cannot be made, saving over the file is refused.
        """
        if not self.key_path.exists():
            return []

        try:
            content = self.key_path.read_text(encoding="utf-8")
            keys = parse_key_file(content, logger=self.logger)
        except (OSError, UnicodeDecodeError, ExtractionError) as e:
            self.logger.log_error("Failed to load key file", path=str(self.key_path), error=str(e))
            self._backup_unreadable()
            return []

        self.logger.log_store_loaded(str(self.key_path), len(keys))
        return keys

    def _backup_unreadable(self) -> None:
        stamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        backup_path = self.backup_dir / f"{self.key_path.stem}_unreadable_{stamp}{self.key_path.suffix}"
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(self.key_path, backup_path)
        except OSError as e:
            self._protected = True
            self.logger.log_error("Could not back up key file", path=str(self.key_path), error=str(e))
            return

        try:
            os.chmod(backup_path, 0o600)
        except OSError:
            pass

        self.backup_path = backup_path
        self.logger.log_warning("Backed up unreadable key file", backup=str(backup_path))

    def save(self, keys: list[ApiKey]) -> None:
        """
        Write all keys to the key file.

        Raises:
            StorageError: If the file cannot be written, or it failed to
                load and could not be backed up
        """
        if self._protected:
            raise StorageError(
                f"Refusing to overwrite {self.key_path}: it could not be loaded or backed up"
            )
        self._write(self.key_path, keys)

    def save_as(self, keys: list[ApiKey], path: str) -> None:
        """Write keys to another key file and make it the current one."""
        target = Path(path)
        self._write(target, keys)
        self.key_path = target
        self._protected = False

    def _write(self, path: Path, keys: list[ApiKey]) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(keys_to_json(keys), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Could not write key file {path}: {e}") from e

        try:
            os.chmod(path, 0o600)
        except OSError:
            pass

        self.logger.log_store_saved(str(path), len(keys))

    def suggest_save_as_name(self) -> str:
        """Default file name to offer when saving under a new name."""
        if self.key_filename == DEFAULT_KEY_FILENAME:
            return "my_keys.key"
        return f"copy_of_{self.key_filename}"

    @staticmethod
    def generate_unique_key_filename(base_dir: str) -> str:
        """First free new_keys_N.key path in base_dir, counting from 1."""
        counter = 1
        path = Path(base_dir) / f"new_keys_{counter}.key"
        while path.exists():
            counter += 1
            path = Path(base_dir) / f"new_keys_{counter}.key"
        return str(path)
