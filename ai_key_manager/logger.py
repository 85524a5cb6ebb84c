"""
Audit Logger Module - Logging activities for auditing purposes.

Records imports, exports, parse failures and changes to the stored key
list. Key values are never written to the log.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional


class AuditLogger:
    """
    Handles audit logging for all API key management activities.

    Logs go to a daily file in the log directory and include timestamps,
    operation types, and relevant metadata.
    """

    def __init__(
        self,
        log_dir: Optional[str] = None,
        log_level: int = logging.INFO,
        console_output: bool = False
    ):
        """
        Initialize the audit logger.

        Args:
            log_dir: Directory to store log files. Defaults to ~/.ai_key_manager/logs
            log_level: Logging level (default: INFO)
            console_output: Whether to also output to console
        """
        if log_dir is None:
            log_dir = os.path.join(os.path.expanduser("~"), ".ai_key_manager", "logs")

        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        # Set restrictive permissions on log directory
        try:
            os.chmod(self.log_dir, 0o700)
        except OSError:
            pass  # May fail on some systems, continue anyway

        # One logger per log directory
        dir_label = str(self.log_dir.resolve()).replace(".", "_")
        self.logger = logging.getLogger("ai_key_manager.audit").getChild(dir_label)
        self.logger.setLevel(log_level)
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)

        log_file = self.log_dir / f"audit_{datetime.now().strftime('%Y%m%d')}.log"
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(log_level)

        formatter = logging.Formatter(
            '%(asctime)s | %(levelname)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler.setFormatter(formatter)
        self.logger.addHandler(file_handler)

        if console_output:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(log_level)
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

        self.log_info("Audit logger initialized")

    def log_info(self, message: str, **kwargs) -> None:
        """Log an informational message."""
        extra_info = self._format_extra(kwargs)
        self.logger.info(f"{message}{extra_info}")

    def log_warning(self, message: str, **kwargs) -> None:
        """Log a warning message."""
        extra_info = self._format_extra(kwargs)
        self.logger.warning(f"{message}{extra_info}")

    def log_error(self, message: str, **kwargs) -> None:
        """Log an error message."""
        extra_info = self._format_extra(kwargs)
        self.logger.error(f"{message}{extra_info}")

    def log_import_start(self, source: str, format_name: str) -> None:
        """Log the start of an import."""
        self.log_info("IMPORT_START", source=source, format=format_name)

    def log_import_complete(self, source: str, keys_found: int, conflicts: int) -> None:
        """Log the outcome of an import preview."""
        self.log_info(
            "IMPORT_COMPLETE",
            source=source,
            keys_found=keys_found,
            conflicts=conflicts
        )

    def log_parse_error(self, source: str, error: str) -> None:
        """Log a document that could not be parsed at all."""
        self.log_error("PARSE_ERROR", source=source, error=error)

    def log_key_extracted(self, name: str, provider: str, source: str) -> None:
        """Log a key extraction event (without logging the actual key)."""
        self.log_info("KEY_EXTRACTED", name=name, provider=provider, source=source)

    def log_key_stored(self, key_id: str, name: str) -> None:
        """Log a key storage event."""
        self.log_info("KEY_STORED", key_id=key_id, name=name)

    def log_key_updated(self, key_id: str, name: str, fields: list) -> None:
        """Log a key update event."""
        self.log_info(
            "KEY_UPDATED",
            key_id=key_id,
            name=name,
            fields_updated=",".join(fields)
        )

    def log_key_deleted(self, key_id: str, name: str) -> None:
        """Log a key deletion event."""
        self.log_info("KEY_DELETED", key_id=key_id, name=name)

    def log_export(self, path: str, format_name: str, count: int) -> None:
        """Log an export to a file."""
        self.log_info("EXPORT", path=path, format=format_name, count=count)

    def log_store_loaded(self, path: str, count: int) -> None:
        """Log loading the key file."""
        self.log_info("STORE_LOADED", path=path, count=count)

    def log_store_saved(self, path: str, count: int) -> None:
        """Log saving the key file."""
        self.log_info("STORE_SAVED", path=path, count=count)

    def _format_extra(self, kwargs: dict) -> str:
        """Format extra keyword arguments for logging."""
        if not kwargs:
            return ""
        parts = [f" | {k}={v}" for k, v in kwargs.items()]
        return "".join(parts)

    def get_log_files(self) -> list:
        """Get list of all log files."""
        return sorted(self.log_dir.glob("audit_*.log"))

    def get_recent_logs(self, lines: int = 100) -> list:
        """Get the most recent log entries."""
        log_files = self.get_log_files()
        if not log_files:
            return []

        recent_file = log_files[-1]
        try:
            with open(recent_file, 'r', encoding='utf-8') as f:
                all_lines = f.readlines()
                return all_lines[-lines:]
        except OSError:
            return []
