"""
Extractor Module - Key extraction from file content.

Runs the format adapter matching a file extension over raw content and
reports the extracted keys, logging each one and any document-level
parse failure.
"""

from dataclasses import dataclass, field
from typing import Optional

from ai_key_manager.adapters import ExtractionError, get_adapter
from ai_key_manager.logger import AuditLogger
from ai_key_manager.records import ApiKey


@dataclass
class ExtractionResult:
    """Outcome of extracting keys from one document."""

    keys: list[ApiKey] = field(default_factory=list)
    format_name: str = ""
    error: Optional[str] = None

    @property
    def parse_failed(self) -> bool:
        """True when the document could not be parsed, as opposed to holding no keys."""
        return self.error is not None


class KeyExtractor:
    """
    Extracts and classifies API keys from file content.

    Never raises for bad input: unreadable documents come back as an
    empty result carrying the error message.
    """

    def __init__(self, logger: Optional[AuditLogger] = None):
        """
        Initialize the key extractor.

        Args:
            logger: AuditLogger instance for logging
        """
        self.logger = logger or AuditLogger()

    def extract(self, content: str, extension: str, source: str = "<memory>") -> ExtractionResult:
        """
        Extract keys from content using the adapter for its extension.

        Args:
            content: Raw file content
            extension: File extension including the dot (e.g. ".env")
            source: Where the content came from, for the audit log

        Returns:
            ExtractionResult with the keys in document order
        """
        adapter = get_adapter(extension)

        try:
            keys = adapter.parse(content)
        except ExtractionError as e:
            self.logger.log_parse_error(source=source, error=str(e))
            return ExtractionResult(format_name=adapter.name, error=str(e))

        for key in keys:
            self.logger.log_key_extracted(name=key.name, provider=key.provider, source=source)

        return ExtractionResult(keys=keys, format_name=adapter.name)

    def filter_by_provider(self, keys: list[ApiKey], provider: str) -> list[ApiKey]:
        """Filter keys by provider name."""
        return [k for k in keys if k.provider.lower() == provider.lower()]

    def group_by_provider(self, keys: list[ApiKey]) -> dict[str, list[ApiKey]]:
        """Group keys by their provider."""
        grouped = {}
        for key in keys:
            if key.provider not in grouped:
                grouped[key.provider] = []
            grouped[key.provider].append(key)
        return grouped
