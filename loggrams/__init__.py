"""
Online Log Template Mining

A Python library that separates static from dynamic tokens in free-text
log lines using n-gram frequency statistics, and renders each line as a
template with <*> placeholders.
"""

__version__ = "1.0.0"
__author__ = "Log Template Mining System"

from .config import ConfigError, LogParserConfig
from .log_format import CompiledFormat, FormatExtractor, compile_format
from .masking import DynamicTokenMasker
from .gramdict import GramEngine, GramFrequencyTable
from .miner import TemplateMiner, TemplateRegistry
from .parser import LogParser, ParseReport, parse_partitions
from .io_utils import JSONLWriter, JSONLReader

__all__ = [
    "ConfigError",
    "LogParserConfig",
    "CompiledFormat",
    "FormatExtractor",
    "compile_format",
    "DynamicTokenMasker",
    "GramEngine",
    "GramFrequencyTable",
    "TemplateMiner",
    "TemplateRegistry",
    "LogParser",
    "ParseReport",
    "parse_partitions",
    "JSONLWriter",
    "JSONLReader"
]
