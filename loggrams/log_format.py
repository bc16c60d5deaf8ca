"""
Line-format compilation and content extraction.

A format such as "<date> <time> <level>: <message>" becomes an anchored
regular expression with one named group per placeholder. Literal text
between placeholders tolerates irregular whitespace.
"""

import re
from typing import Dict, List, Optional

from .config import ConfigError


PLACEHOLDER_SPLITTER = re.compile(r'(<[^<>]+>)')
_GROUP_NAME = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


class CompiledFormat:
    """An anchored, whole-line matcher built from a line-format spec."""

    def __init__(self, spec: str, pattern: re.Pattern, fields: List[str]):
        self.spec = spec
        self.pattern = pattern
        self.fields = fields

    def parse(self, line: str) -> Optional[Dict[str, str]]:
        """Return every named field of a conforming line, or None."""
        match = self.pattern.match(line.strip())
        if match is None:
            return None
        return match.groupdict()

    def __repr__(self) -> str:
        return f"CompiledFormat({self.spec!r})"


def compile_format(spec: str) -> CompiledFormat:
    """
    Compile a line-format spec.

    Raises:
        ConfigError: if the spec has no placeholders, repeats a name, or
            uses a name that cannot be a regex group.
    """
    splitters = PLACEHOLDER_SPLITTER.split(spec)
    fields = []
    regex = ''

    for k, splitter in enumerate(splitters):
        if k % 2 == 0:
            # Literal text: escape it, then let any whitespace run stretch
            literal = re.escape(splitter)
            regex += re.sub(r'(?:\\\s|\s)+', r'\\s+', literal)
        else:
            header = splitter.strip('<>')
            if not _GROUP_NAME.match(header):
                raise ConfigError(f"Invalid placeholder name {splitter!r} in log format")
            if header in fields:
                raise ConfigError(f"Duplicate placeholder {splitter!r} in log format")
            fields.append(header)
            regex += '(?P<%s>.*?)' % header

    if not fields:
        raise ConfigError(f"Log format has no <placeholders>: {spec!r}")

    return CompiledFormat(spec, re.compile('^' + regex + '$'), fields)


class FormatExtractor:
    """Pulls the content field out of raw log lines."""

    def __init__(self, log_format: str, content_field: str):
        self.compiled = compile_format(log_format)
        if content_field not in self.compiled.fields:
            raise ConfigError(
                f"Content field {content_field!r} is not a placeholder of {log_format!r} "
                f"(known: {', '.join(self.compiled.fields)})"
            )
        self.content_field = content_field

    def extract_content(self, line: str) -> Optional[str]:
        """Return the content field of a conforming line, or None on no match."""
        return extract_content(self.compiled, line, self.content_field)


def extract_content(compiled: CompiledFormat, line: str, content_field: str) -> Optional[str]:
    fields = compiled.parse(line)
    if fields is None:
        return None
    return fields.get(content_field)
