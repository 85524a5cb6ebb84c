"""
Manager Module - High-level API key management operations.

Provides a unified interface over the key file, file imports with
conflict preview, system environment imports and exports.
"""

import os
from pathlib import Path
from typing import Mapping, Optional

from ai_key_manager.exporter import detect_file_format, format_keys_for_export, get_file_extension
from ai_key_manager.extractor import ExtractionResult, KeyExtractor
from ai_key_manager.logger import AuditLogger
from ai_key_manager.providers import OTHER, detect_provider
from ai_key_manager.records import ApiKey, ImportPreview, create_key, now_iso
from ai_key_manager.storage import KeyStore, StorageError


ENV_IMPORT_DESCRIPTION = "Imported from system environment"
# Longer environment entries are system variables, not keys
MAX_ENV_NAME_LENGTH = 50
MAX_ENV_VALUE_LENGTH = 500


class KeyManager:
    """
    High-level API key management interface.

    Combines the key store and the extractor into the import, edit and
    export workflow, auditing each change.
    """

    def __init__(
        self,
        storage_dir: Optional[str] = None,
        key_file: Optional[str] = None,
        log_dir: Optional[str] = None
    ):
        """
        Initialize the key manager.

        Args:
            storage_dir: Directory holding key files
            key_file: Key file to open instead of the default one
            log_dir: Directory for audit logs (defaults to <storage_dir>/logs)
        """
        if log_dir is None and storage_dir is not None:
            log_dir = os.path.join(storage_dir, "logs")

        self.logger = AuditLogger(log_dir=log_dir)
        self.extractor = KeyExtractor(logger=self.logger)
        self.store = KeyStore(storage_dir=storage_dir, key_file=key_file, logger=self.logger)
        self.keys: list[ApiKey] = self.store.load()

    def _find(self, key_id: str) -> Optional[ApiKey]:
        for key in self.keys:
            if key.id == key_id:
                return key
        return None

    def save(self) -> None:
        """Persist the current key list."""
        self.store.save(self.keys)

    # === Key File Operations ===

    def save_as(self, path: Optional[str] = None) -> str:
        """
        Save the current keys to another key file and switch to it.

        Args:
            path: Destination (defaults to the suggested name in the storage dir)

        Returns:
            Path of the key file now in use
        """
        if path is None:
            path = str(self.store.storage_dir / self.store.suggest_save_as_name())
        self.store.save_as(self.keys, path)
        return path

    def new_key_file(self, base_dir: Optional[str] = None) -> str:
        """
        Start an empty key file with the first free new_keys_N.key name.

        Args:
            base_dir: Directory for the new file (defaults to the storage dir)

        Returns:
            Path of the new key file
        """
        path = KeyStore.generate_unique_key_filename(base_dir or str(self.store.storage_dir))
        self.keys = []
        self.store.save_as(self.keys, path)
        return path

    # === Key Management Operations ===

    def list_keys(self, provider: Optional[str] = None) -> list[ApiKey]:
        """
        List stored keys.

        Args:
            provider: Filter by provider name (optional, case-insensitive)
        """
        if provider:
            return self.extractor.filter_by_provider(self.keys, provider)
        return list(self.keys)

    def get_key(self, key_id: str) -> Optional[ApiKey]:
        """Get a key by ID, or None if not found."""
        return self._find(key_id)

    def search_keys(self, query: str) -> list[ApiKey]:
        """Search keys by name, provider or description."""
        needle = query.lower()
        return [
            key for key in self.keys
            if needle in key.name.lower()
            or needle in key.provider.lower()
            or needle in key.description.lower()
        ]

    def add_key(
        self,
        name: str,
        value: str,
        provider: Optional[str] = None,
        description: str = ""
    ) -> ApiKey:
        """
        Manually add a new API key.

        Args:
            name: Key name
            value: Key value
            provider: Provider name (detected from name and value if omitted)
            description: Optional description

        Returns:
            The stored key
        """
        name = name.strip()
        value = value.strip()
        if not name or not value:
            raise ValueError("Key name and value cannot be empty")

        key = create_key(name, value, provider or detect_provider(name, value), description)
        self.keys.append(key)
        self.save()
        self.logger.log_key_stored(key.id, key.name)
        return key

    def update_key(
        self,
        key_id: str,
        name: Optional[str] = None,
        value: Optional[str] = None,
        provider: Optional[str] = None,
        description: Optional[str] = None
    ) -> ApiKey:
        """
        Update a key's properties. The id and creation date never change.

        Raises:
            StorageError: If no key has this id
        """
        key = self._find(key_id)
        if key is None:
            raise StorageError(f"Key not found: {key_id}")

        changes = {"name": name, "value": value, "provider": provider, "description": description}
        updated = []
        for field_name, new_value in changes.items():
            if new_value is not None:
                setattr(key, field_name, new_value)
                updated.append(field_name)

        if updated:
            self.save()
            self.logger.log_key_updated(key.id, key.name, updated)
        return key

    def delete_key(self, key_id: str) -> bool:
        """Delete a key by ID. Returns False if it does not exist."""
        key = self._find(key_id)
        if key is None:
            return False

        self.keys.remove(key)
        self.save()
        self.logger.log_key_deleted(key.id, key.name)
        return True

    def mark_used(self, key_id: str) -> Optional[ApiKey]:
        """Stamp a key's last-used time."""
        key = self._find(key_id)
        if key is None:
            return None

        key.last_used = now_iso()
        self.save()
        return key

    def get_stats(self) -> dict:
        """Get key counts per provider."""
        grouped = self.extractor.group_by_provider(self.keys)
        by_provider = {provider: len(keys) for provider, keys in grouped.items()}
        return {
            "total_keys": len(self.keys),
            "by_provider": by_provider,
            "providers_count": len(by_provider),
            "key_file": str(self.store.key_path),
        }

    # === Import Operations ===

    def preview_import_content(
        self,
        content: str,
        extension: str,
        source: str = "<memory>"
    ) -> tuple[ImportPreview, ExtractionResult]:
        """
        Extract keys from content and flag name conflicts with stored keys.

        Returns:
            Tuple of (preview, extraction result). The result's error is set
            when the document could not be parsed at all.
        """
        result = self.extractor.extract(content, extension, source=source)
        preview = ImportPreview.build(result.keys, self.keys, result.format_name)
        if not result.parse_failed:
            self.logger.log_import_complete(source, len(preview.keys), len(preview.conflicts))
        return preview, result

    def preview_import(self, path: str) -> tuple[ImportPreview, ExtractionResult]:
        """
        Read a file and preview importing its keys.

        Raises:
            StorageError: If the file cannot be read
        """
        file_path = Path(path)
        try:
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Could not read {path}: {e}") from e

        self.logger.log_import_start(str(file_path), detect_file_format(path).name)
        return self.preview_import_content(content, get_file_extension(path), source=str(file_path))

    def preview_environment(self, environ: Optional[Mapping[str, str]] = None) -> ImportPreview:
        """
        Preview importing variables from the process environment.

        Overlong names or values are skipped. Imported variables are not
        classified and get the provider "Other".
        """
        if environ is None:
            environ = os.environ

        self.logger.log_import_start("environment", "System Environment")
        candidates = []
        for name, value in environ.items():
            name = name.strip()
            value = value.strip()
            if not name or not value:
                continue
            if len(name) > MAX_ENV_NAME_LENGTH or len(value) > MAX_ENV_VALUE_LENGTH:
                continue
            candidates.append(create_key(name, value, OTHER, ENV_IMPORT_DESCRIPTION))

        preview = ImportPreview.build(candidates, self.keys, "System Environment")
        self.logger.log_import_complete("environment", len(preview.keys), len(preview.conflicts))
        return preview

    def confirm_import(self, preview: ImportPreview, skip_conflicts: bool = True) -> int:
        """
        Add previewed keys to the store.

        Args:
            preview: Preview returned by one of the preview methods
            skip_conflicts: Leave out keys whose name already exists. When
                False, stored keys with a conflicting name are replaced.

        Returns:
            Number of keys added
        """
        incoming = preview.keys_to_import(skip_conflicts=skip_conflicts)
        if not incoming:
            return 0

        if not skip_conflicts:
            replaced = {key.name for key in preview.conflicts}
            for key in [k for k in self.keys if k.name in replaced]:
                self.keys.remove(key)
                self.logger.log_key_deleted(key.id, key.name)

        for key in incoming:
            self.keys.append(key)
            self.logger.log_key_stored(key.id, key.name)

        self.save()
        return len(incoming)

    # === Export Operations ===

    def export_keys(self, path: str, extension: Optional[str] = None) -> int:
        """
        Export all keys to a file.

        Args:
            path: Destination file
            extension: Format to write (defaults to the path's extension)

        Returns:
            Number of keys exported
        """
        if not self.keys:
            raise ValueError("No keys to export")

        extension = extension or get_file_extension(path)
        content = format_keys_for_export(self.keys, extension)
        if content is None:
            raise ValueError(f"Unsupported export format: {extension or path}")

        try:
            Path(path).write_text(content, encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Could not write {path}: {e}") from e

        self.logger.log_export(path, extension, len(self.keys))
        return len(self.keys)

    # === Audit Log Access ===

    def get_recent_logs(self, lines: int = 100) -> list[str]:
        """Get recent audit log entries."""
        return self.logger.get_recent_logs(lines)
