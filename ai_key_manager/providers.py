"""
Providers Module - Provider taxonomy and key classification.

Holds the ordered provider rule table used to classify a key/value pair,
plus per-provider reference data (generation URLs, key shapes and
default environment variable names).
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Optional


OPENAI = "OpenAI"
ANTHROPIC = "Anthropic"
GOOGLE = "Google"
AWS = "AWS"
AZURE = "Azure"
HUGGINGFACE = "HuggingFace"
OTHER = "Other"

# Closed provider enumeration, in display order
PROVIDERS = (OPENAI, ANTHROPIC, GOOGLE, AWS, AZURE, HUGGINGFACE, OTHER)


@dataclass(frozen=True)
class PatternRule:
    """
    A single classification rule belonging to one provider.

    The key pattern is tested against the key name (case-insensitive),
    the value pattern against the key value. Either may be omitted, but
    not both.
    """

    provider: str
    key: Optional[str] = None
    value: Optional[str] = None
    value_ignore_case: bool = False
    _key_re: Optional[re.Pattern] = field(default=None, init=False, repr=False, compare=False)
    _value_re: Optional[re.Pattern] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.key is None and self.value is None:
            raise ValueError(f"Rule for {self.provider} needs a key or value pattern")
        if self.key is not None:
            object.__setattr__(self, "_key_re", re.compile(self.key, re.IGNORECASE))
        if self.value is not None:
            flags = re.IGNORECASE if self.value_ignore_case else 0
            object.__setattr__(self, "_value_re", re.compile(self.value, flags))

    def matches(self, name: str, value: str) -> bool:
        """Check whether this rule matches the name or the value."""
        if self._key_re is not None and self._key_re.search(name):
            return True
        if self._value_re is not None and self._value_re.search(value):
            return True
        return False


def _rules(provider: str, *specs: dict) -> tuple:
    return tuple(PatternRule(provider=provider, **spec) for spec in specs)


# Order matters: providers are tried top to bottom and the first matching
# rule wins. The bare API_KEY name is deliberately claimed by Google.
PROVIDER_PATTERNS = MappingProxyType({
    OPENAI: _rules(
        OPENAI,
        {"key": r"openai", "value": r"^sk-[^a-z]"},
        {"key": r"gpt"},
        {"key": r"^OPENAI_API_KEY$"},
    ),
    GOOGLE: _rules(
        GOOGLE,
        {"key": r"google"},
        {"key": r"gcp"},
        {"key": r"gemini"},
        {"key": r"^GOOGLE_API_KEY$"},
        {"key": r"^API_KEY$"},
    ),
    ANTHROPIC: _rules(
        ANTHROPIC,
        {"key": r"anthropic"},
        {"key": r"claude"},
        {"value": r"^sk-ant-"},
        {"key": r"^ANTHROPIC_API_KEY$"},
    ),
    AZURE: _rules(
        AZURE,
        {"key": r"azure"},
        {"key": r"microsoft"},
        {"key": r"cognitive"},
        {"key": r"^AZURE_"},
    ),
    HUGGINGFACE: _rules(
        HUGGINGFACE,
        {"key": r"hugg?ingface"},
        {"key": r"hf_"},
        {"key": r"^HF_API_KEY$"},
    ),
    AWS: _rules(
        AWS,
        {"key": r"aws"},
        {"key": r"amazon"},
        {"key": r"^AWS_"},
        {"value": r"^AKIA[0-9A-Z]{16}$"},
    ),
})


def detect_provider(name: str, value: str) -> str:
    """
    Determine the likely provider of a key from its name and value.

    Providers are tried in table order and the first matching rule wins.

    Args:
        name: Key name (e.g. an environment variable name)
        value: Key value

    Returns:
        One of PROVIDERS; "Other" when nothing matches
    """
    for provider, rules in PROVIDER_PATTERNS.items():
        for rule in rules:
            if rule.matches(name, value):
                return provider
    return OTHER


@dataclass(frozen=True)
class ProviderInfo:
    """Reference data about where and how a provider issues keys."""

    provider: str
    name: str
    website_url: str
    generate_url: str
    key_patterns: tuple = ()


PROVIDER_INFO = MappingProxyType({
    OPENAI: ProviderInfo(
        provider=OPENAI,
        name="OpenAI",
        website_url="https://openai.com",
        generate_url="https://platform.openai.com/api-keys",
        key_patterns=(re.compile(r"^sk-[A-Za-z0-9]{48}$"),),
    ),
    GOOGLE: ProviderInfo(
        provider=GOOGLE,
        name="Google AI / Gemini",
        website_url="https://ai.google.dev/",
        generate_url="https://makersuite.google.com/app/apikey",
        key_patterns=(re.compile(r"^AIza[A-Za-z0-9_-]{35}$"),),
    ),
    ANTHROPIC: ProviderInfo(
        provider=ANTHROPIC,
        name="Anthropic (Claude)",
        website_url="https://anthropic.com",
        generate_url="https://console.anthropic.com/keys",
        key_patterns=(re.compile(r"^sk-ant-[A-Za-z0-9]{48}$"),),
    ),
    AWS: ProviderInfo(
        provider=AWS,
        name="Amazon Web Services",
        website_url="https://aws.amazon.com",
        generate_url="https://console.aws.amazon.com/iam/home#/security_credentials",
        key_patterns=(re.compile(r"^AKIA[A-Z0-9]{16}$"),),
    ),
    AZURE: ProviderInfo(
        provider=AZURE,
        name="Microsoft Azure",
        website_url="https://azure.microsoft.com",
        generate_url="https://portal.azure.com/#view/Microsoft_Azure_ProjectOxford/CognitiveServicesHub/~/overview",
        key_patterns=(re.compile(r"^[a-f0-9]{32}$", re.IGNORECASE),),
    ),
    HUGGINGFACE: ProviderInfo(
        provider=HUGGINGFACE,
        name="Hugging Face",
        website_url="https://huggingface.co",
        generate_url="https://huggingface.co/settings/tokens",
        key_patterns=(re.compile(r"^hf_[A-Za-z0-9]{34}$"),),
    ),
    OTHER: ProviderInfo(
        provider=OTHER,
        name="Other Provider",
        website_url="",
        generate_url="",
        key_patterns=(re.compile(r".+"),),
    ),
})


def looks_like_provider_key(text: str, provider: str) -> bool:
    """Check if a piece of text has the shape of a key issued by provider."""
    info = PROVIDER_INFO.get(provider)
    if info is None:
        return False
    candidate = text.strip()
    return any(pattern.search(candidate) for pattern in info.key_patterns)


# Common environment variable names for each provider
DEFAULT_KEY_NAMES = MappingProxyType({
    OPENAI: ("OPENAI_API_KEY", "OPENAI_KEY", "OPENAI_SECRET_KEY", "GPT_API_KEY", "GPT_KEY"),
    GOOGLE: (
        "GOOGLE_API_KEY",
        "GOOGLE_GEMINI_API_KEY",
        "GEMINI_API_KEY",
        "GOOGLE_GENERATIVE_AI_KEY",
        "GOOGLE_MAPS_API_KEY",
        "GOOGLE_CLOUD_API_KEY",
    ),
    ANTHROPIC: ("ANTHROPIC_API_KEY", "ANTHROPIC_KEY", "CLAUDE_API_KEY", "CLAUDE_KEY"),
    AWS: ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "AWS_API_KEY", "AWS_BEDROCK_API_KEY"),
    AZURE: (
        "AZURE_API_KEY",
        "AZURE_OPENAI_API_KEY",
        "AZURE_COGNITIVE_SERVICES_KEY",
        "MICROSOFT_API_KEY",
        "MICROSOFT_AZURE_API_KEY",
    ),
    HUGGINGFACE: ("HUGGINGFACE_API_KEY", "HUGGINGFACE_KEY", "HF_API_KEY", "HF_KEY"),
    OTHER: ("API_KEY", "SECRET_KEY", "AUTH_TOKEN"),
})


def get_default_key_name(provider: str, index: int = 0) -> str:
    """Get a default key name for a provider, wrapping around the list."""
    names = DEFAULT_KEY_NAMES.get(provider, DEFAULT_KEY_NAMES[OTHER])
    return names[index % len(names)]


def get_unique_key_name(provider: str, existing_names=None) -> str:
    """
    Get a default key name for a provider that is not already taken.

    Tries each default name in turn, then falls back to appending a
    counter to the first one (OPENAI_API_KEY_1, OPENAI_API_KEY_2, ...).
    """
    taken = set(existing_names or ())
    names = DEFAULT_KEY_NAMES.get(provider, DEFAULT_KEY_NAMES[OTHER])

    for index in range(len(names)):
        name = get_default_key_name(provider, index)
        if name not in taken:
            return name

    counter = 1
    while f"{names[0]}_{counter}" in taken:
        counter += 1
    return f"{names[0]}_{counter}"
