"""
Adapters Module - Per-format front ends for key extraction.

Each adapter turns the raw text of one file format into an ordered list
of ApiKey records. Malformed lines and rows are skipped; a document that
cannot be read as its format at all raises ExtractionError.
"""

import json
import re
from typing import Optional

from ai_key_manager.providers import OTHER, detect_provider
from ai_key_manager.records import ApiKey, create_key
from ai_key_manager.tokenizer import extract_key_value_pair, is_valid_key_format


class ExtractionError(Exception):
    """Raised when a structured document cannot be parsed."""
    pass


_LINE_BREAK = re.compile(r"\r?\n")


class FormatAdapter:
    """Base class for format adapters."""

    name = "Any File"
    extensions: tuple = ()

    def parse(self, content: str) -> list[ApiKey]:
        raise NotImplementedError


class LineAdapter(FormatAdapter):
    """
    Adapter for line-oriented files (.env, .txt, .ini, ...).

    Every line that tokenizes into a valid, non-empty key/value pair
    becomes one record, in input order.
    """

    name = "Environment File"
    extensions = (".env", ".txt", ".properties", ".conf", ".cfg", ".ini")

    def parse(self, content: str) -> list[ApiKey]:
        keys = []
        for line in _LINE_BREAK.split(content):
            pair = extract_key_value_pair(line)
            if pair is None:
                continue

            name, value = pair
            if not name or not value:
                continue
            if not is_valid_key_format(name):
                continue

            keys.append(create_key(name, value, detect_provider(name, value)))
        return keys


class JsonAdapter(FormatAdapter):
    """
    Adapter for JSON documents.

    An array is read as a list of stored records (keeping ids and
    metadata); an object is read as a flat name -> value mapping.
    """

    name = "JSON"
    extensions = (".json", ".key")

    def parse(self, content: str) -> list[ApiKey]:
        try:
            parsed = json.loads(content)
        except ValueError as e:
            raise ExtractionError(f"Invalid JSON: {e}") from e

        if isinstance(parsed, list):
            keys = []
            for item in parsed:
                key = self._record_from_item(item)
                if key is not None:
                    keys.append(key)
            return keys

        if isinstance(parsed, dict):
            keys = []
            for name, raw_value in parsed.items():
                if isinstance(raw_value, str):
                    value = raw_value
                else:
                    value = json.dumps(raw_value, ensure_ascii=False, separators=(",", ":"))
                if not name or not value:
                    continue
                keys.append(create_key(name, value, detect_provider(name, value)))
            return keys

        return []

    @staticmethod
    def _record_from_item(item) -> Optional[ApiKey]:
        """Normalize one loosely-shaped array element into a record."""
        if not isinstance(item, dict):
            return None

        name = item.get("name")
        value = item.get("value")
        if not name or not value:
            return None

        name = name if isinstance(name, str) else str(name)
        value = value if isinstance(value, str) else str(value)
        provider = item.get("provider") or detect_provider(name, value)

        return create_key(
            name,
            value,
            str(provider),
            description=item.get("description") or "",
            key_id=str(item["id"]) if item.get("id") else None,
            date_added=item.get("dateAdded"),
            last_used=item.get("lastUsed"),
        )


class CsvAdapter(FormatAdapter):
    """
    Adapter for CSV files with a header row.

    The header must name a key column (name/key) and a value column
    (value/secret); a provider/service column is optional. Fields are
    split on plain commas without quote handling.
    """

    name = "CSV"
    extensions = (".csv",)

    NAME_COLUMNS = ("name", "key")
    VALUE_COLUMNS = ("value", "secret")
    PROVIDER_COLUMNS = ("provider", "service")

    @staticmethod
    def _find_column(header: list[str], candidates: tuple) -> int:
        for index, column in enumerate(header):
            if column.lower() in candidates:
                return index
        return -1

    def parse(self, content: str) -> list[ApiKey]:
        lines = _LINE_BREAK.split(content)
        header = [column.strip() for column in lines[0].split(",")]

        name_index = self._find_column(header, self.NAME_COLUMNS)
        value_index = self._find_column(header, self.VALUE_COLUMNS)
        provider_index = self._find_column(header, self.PROVIDER_COLUMNS)

        if name_index == -1 or value_index == -1:
            raise ExtractionError(
                "CSV header needs a name/key column and a value/secret column"
            )

        required = max(name_index, value_index)
        keys = []
        for line in lines[1:]:
            line = line.strip()
            if not line:
                continue

            cells = [cell.strip() for cell in line.split(",")]
            if len(cells) <= required:
                continue

            name = cells[name_index]
            value = cells[value_index]
            if not name or not value:
                continue

            explicit = None
            if provider_index != -1 and provider_index < len(cells):
                explicit = cells[provider_index] or None

            keys.append(create_key(name, value, explicit or self._classify(name, value)))
        return keys

    @staticmethod
    def _classify(name: str, value: str) -> str:
        """Classify a row the same way its name=value line would be."""
        extracted = LineAdapter().parse(f"{name}={value}")
        return extracted[0].provider if extracted else OTHER


_ADAPTERS = (LineAdapter(), JsonAdapter(), CsvAdapter())
_FALLBACK = LineAdapter()


def get_adapter(extension: str) -> FormatAdapter:
    """Pick the adapter for a file extension such as ".csv"; unknown ones read as lines."""
    extension = extension.lower()
    for adapter in _ADAPTERS:
        if extension in adapter.extensions:
            return adapter
    return _FALLBACK
