"""
Core data models for template mining.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
from dataclasses_json import dataclass_json, config
from enum import Enum


PLACEHOLDER = "<*>"


class SkipReason(Enum):
    """Why a line produced no template."""
    NO_MATCH = "no_match"
    EMPTY_CONTENT = "empty_content"

    def __str__(self) -> str:
        return self.value


@dataclass
class MaskResult:
    """Output of masking one content string."""
    masked_content: str
    tokens: List[str]
    masked_tokens: Dict[str, str] = field(default_factory=dict)
    original_tokens: List[str] = field(default_factory=list)


@dataclass
class TemplateResult:
    """Result of classifying and rendering one token sequence."""
    template_string: str
    dynamic_token_values: Dict[str, str]
    template_id: int
    dynamic_indices: List[int] = field(default_factory=list)


@dataclass_json
@dataclass
class TemplateEntry:
    """A mined template as stored in the registry."""
    template_id: int
    template_string: str
    event_id: str
    occurrences: int = 0


@dataclass_json
@dataclass
class ParsedLine:
    """Per-record output; derived fields are None when the line was skipped."""
    raw_line: str
    template_string: Optional[str] = None
    template_id: Optional[int] = None
    event_id: Optional[str] = None
    dynamic_token_values: Optional[Dict[str, str]] = None
    skip_reason: Optional[SkipReason] = field(default=None, metadata=config(
        encoder=lambda x: x.value if x is not None else None,
        decoder=lambda x: SkipReason(x) if x is not None else None
    ))

    @property
    def skipped(self) -> bool:
        return self.skip_reason is not None

    def __str__(self) -> str:
        if self.skipped:
            return f"Skipped({self.skip_reason})"
        return f"Parsed(template_id={self.template_id}, template={self.template_string!r})"
