"""
Exporter Module - Supported file formats and export formatting.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ai_key_manager.records import ApiKey


@dataclass(frozen=True)
class FileFormat:
    name: str
    extension: str
    mime_type: str


FILE_FORMATS = (
    FileFormat("Key File", ".key", "application/json"),
    FileFormat("Environment File", ".env", "text/plain"),
    FileFormat("JSON", ".json", "application/json"),
    FileFormat("CSV", ".csv", "text/csv"),
    FileFormat("Text File", ".txt", "text/plain"),
    FileFormat("Any File", "*", "text/plain"),
)

CSV_HEADER = "name,value,provider,description,dateAdded,lastUsed"


def get_file_extension(file_path: str) -> str:
    """Lowercase extension with its dot, or "" when there is none."""
    name = Path(file_path).name
    if "." not in name:
        return ""
    return "." + name.rsplit(".", 1)[1].lower()


def detect_file_format(file_path: str) -> FileFormat:
    """Match a path to a known format, falling back to "Any File"."""
    extension = get_file_extension(file_path)
    for file_format in FILE_FORMATS:
        if file_format.extension == extension:
            return file_format
    return FILE_FORMATS[-1]


def keys_to_json(keys: list[ApiKey]) -> str:
    """Serialize keys as the pretty-printed JSON array used by key files."""
    return json.dumps([key.to_dict() for key in keys], indent=2)


def format_keys_for_export(keys: list[ApiKey], extension: str) -> Optional[str]:
    """
    Render keys in the format for the given extension.

    Args:
        keys: Keys to export
        extension: Target extension (".key", ".json", ".env", ".csv", ".txt")

    Returns:
        The file content, or None for an unsupported extension
    """
    extension = extension.lower()

    if extension in (".key", ".json"):
        return keys_to_json(keys)

    if extension == ".env":
        return "\n".join(f"{key.name}={key.value}" for key in keys)

    if extension == ".txt":
        return "\n".join(f"{key.name}: {key.value}" for key in keys)

    if extension == ".csv":
        rows = [
            f"{key.name},{key.value},{key.provider},{key.description or ''},"
            f"{key.date_added},{key.last_used or ''}"
            for key in keys
        ]
        return "\n".join([CSV_HEADER] + rows)

    return None
