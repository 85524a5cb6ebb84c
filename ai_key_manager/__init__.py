"""
AI Key Manager - Local storage, import and export of AI service API keys

Extracts keys from .env, JSON, CSV and plain text files, classifies them
by provider and keeps them in a flat JSON key file.
"""

__version__ = "1.0.0"
__author__ = "AI Key Manager Team"

from ai_key_manager.providers import PROVIDERS, detect_provider
from ai_key_manager.tokenizer import extract_key_value_pair, is_valid_key_format
from ai_key_manager.records import ApiKey, ImportPreview
from ai_key_manager.extractor import ExtractionResult, KeyExtractor
from ai_key_manager.storage import KeyStore
from ai_key_manager.manager import KeyManager
from ai_key_manager.logger import AuditLogger

__all__ = [
    "PROVIDERS",
    "detect_provider",
    "extract_key_value_pair",
    "is_valid_key_format",
    "ApiKey",
    "ImportPreview",
    "ExtractionResult",
    "KeyExtractor",
    "KeyStore",
    "KeyManager",
    "AuditLogger",
]
