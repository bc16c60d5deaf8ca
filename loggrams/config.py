"""
Construction-time configuration for a log parser instance.
"""

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from dataclasses_json import dataclass_json


DEFAULT_LOG_FORMAT = "<date> <time> <message>"
DEFAULT_CONTENT_FIELD = "message"
DEFAULT_THRESHOLD = 0.5
DEFAULT_MAXIMUM_GRAM_DICT_SIZE = 10000


class ConfigError(ValueError):
    """Raised when a parser cannot be built from the given settings."""


@dataclass_json
@dataclass
class LogParserConfig:
    """
    Settings shared by every component of one parser instance.

    Attributes:
        log_format: Line layout with <name> placeholders, e.g. "<date> <time> <message>"
        content_field: Placeholder whose value is tokenized
        regexes: User patterns masked before the built-in ones, in order
        dynamic_token_threshold: Ratio at or below which a token is dynamic
        maximum_gram_dict_size: Capacity of each n-gram table
        seed_file: Optional file of historical lines used to warm the tables
    """
    log_format: str = DEFAULT_LOG_FORMAT
    content_field: str = DEFAULT_CONTENT_FIELD
    regexes: List[str] = field(default_factory=list)
    dynamic_token_threshold: float = DEFAULT_THRESHOLD
    maximum_gram_dict_size: int = DEFAULT_MAXIMUM_GRAM_DICT_SIZE
    seed_file: Optional[str] = None

    def validate(self) -> "LogParserConfig":
        """Check scalar settings; format and regex checks happen when they compile."""
        if not isinstance(self.log_format, str) or not self.log_format.strip():
            raise ConfigError("log_format must be a non-empty string")
        if not self.content_field:
            raise ConfigError("content_field must be set")
        try:
            threshold = float(self.dynamic_token_threshold)
        except (TypeError, ValueError):
            raise ConfigError(
                f"dynamic_token_threshold must be a number, got {self.dynamic_token_threshold!r}"
            )
        if not 0.0 <= threshold <= 1.0:
            raise ConfigError(
                f"dynamic_token_threshold must lie in [0, 1], got {threshold}"
            )
        self.dynamic_token_threshold = threshold
        if (isinstance(self.maximum_gram_dict_size, bool)
                or not isinstance(self.maximum_gram_dict_size, int)
                or self.maximum_gram_dict_size <= 0):
            raise ConfigError(
                f"maximum_gram_dict_size must be a positive integer, got {self.maximum_gram_dict_size!r}"
            )
        if self.seed_file is not None and not Path(self.seed_file).is_file():
            raise ConfigError(f"seed_file does not exist: {self.seed_file}")
        return self

    def merged(self, **overrides: Any) -> "LogParserConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    @classmethod
    def from_file(cls, path: str) -> "LogParserConfig":
        """Load settings from a JSON file."""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read config file {path}: {e}")
        return cls.from_mapping(data)

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "LogParserConfig":
        if not isinstance(data, dict):
            raise ConfigError("config must be a JSON object")
        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
        return cls.from_dict(data)
