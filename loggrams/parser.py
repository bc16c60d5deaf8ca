"""
Per-record template mining pipeline.

    raw line -> format extraction -> masking -> classify/render/register -> ingest

One LogParser owns one GramEngine and one TemplateRegistry. It is meant for
a single stream partition and a single thread: line N is classified against
statistics from lines before N, then ingested before line N+1 is looked at.
Parallelism comes from running independent parsers over independent
partitions (see parse_partitions).
"""

import os
from collections import defaultdict
from dataclasses import replace
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from tqdm import tqdm

from .config import LogParserConfig
from .gramdict import GramEngine
from .io_utils import read_lines
from .log_format import FormatExtractor
from .logging import get_logger
from .masking import DynamicTokenMasker
from .miner import TemplateMiner, TemplateRegistry
from .models import MaskResult, ParsedLine, SkipReason, TemplateEntry


logger = get_logger()


class ParseReport:
    """
    Counters for one parser: parsed lines, skipped lines by reason, template usage.

    When given the parser's miner, the summary also carries its frequency
    score histogram.
    """

    def __init__(self, miner: Optional[TemplateMiner] = None, max_skipped_samples: int = 100):
        self.miner = miner
        self.total_lines = 0
        self.parsed_lines = 0
        self.skipped = defaultdict(int)
        self.seeded_lines = 0
        self.seed_skipped = 0
        self.template_usage = defaultdict(int)
        self.skipped_samples: List[str] = []
        self.max_skipped_samples = max_skipped_samples

    def add_parsed(self, record: ParsedLine) -> None:
        self.total_lines += 1
        self.parsed_lines += 1
        self.template_usage[record.template_id] += 1

    def add_skipped(self, record: ParsedLine) -> None:
        self.total_lines += 1
        self.skipped[record.skip_reason.value] += 1
        if len(self.skipped_samples) < self.max_skipped_samples:
            self.skipped_samples.append(record.raw_line[:200])

    @property
    def skipped_lines(self) -> int:
        return sum(self.skipped.values())

    def get_summary(self) -> Dict[str, Any]:
        parse_rate = (self.parsed_lines / self.total_lines * 100) if self.total_lines > 0 else 0
        return {
            'total_lines': self.total_lines,
            'parsed_lines': self.parsed_lines,
            'skipped_lines': self.skipped_lines,
            'skipped_by_reason': dict(self.skipped),
            'parse_rate': parse_rate,
            'seeded_lines': self.seeded_lines,
            'seed_skipped': self.seed_skipped,
            'unique_templates_used': len(self.template_usage),
            'top_templates': sorted(self.template_usage.items(), key=lambda x: x[1], reverse=True)[:10],
            'skipped_samples': self.skipped_samples[:20],
            'score_histogram': self.miner.score_histogram() if self.miner is not None else {},
        }


class LogParser:
    """
    Online template miner for one stream partition.

    Args:
        config: Validated on construction; a bad format, content field,
            threshold, capacity or regex raises ConfigError here.
        engine: Optional pre-built engine, e.g. one warmed elsewhere by a
            sequential seeding phase.
    """

    def __init__(self, config: LogParserConfig, engine: Optional[GramEngine] = None):
        self.config = config.validate()
        self.extractor = FormatExtractor(config.log_format, config.content_field)
        self.masker = DynamicTokenMasker(config.regexes)
        self.engine = engine if engine is not None else GramEngine(config.maximum_gram_dict_size)
        self.registry = TemplateRegistry()
        self.miner = TemplateMiner(self.engine, self.registry)
        self.threshold = config.dynamic_token_threshold
        self.report = ParseReport(self.miner)

        if config.seed_file:
            self.seed_file(config.seed_file)

    def tokenize(self, line: str) -> Tuple[Optional[MaskResult], Optional[SkipReason]]:
        """Extract and mask a line; returns (mask result, skip reason)."""
        content = self.extractor.extract_content(line)
        if content is None:
            return None, SkipReason.NO_MATCH

        masked = self.masker.mask(content)
        if not masked.tokens:
            return masked, SkipReason.EMPTY_CONTENT

        return masked, None

    def process_line(self, line: str) -> ParsedLine:
        """Mine one raw line. Skips are reported in the result, never raised."""
        raw_line = line.rstrip('\r\n')
        masked, skip_reason = self.tokenize(raw_line)

        if skip_reason is not None:
            record = ParsedLine(raw_line=raw_line, skip_reason=skip_reason)
            self.report.add_skipped(record)
            logger.debug("Skipped line (%s): %.200s", skip_reason, raw_line)
            return record

        result = self.miner.parse(masked.tokens, self.threshold, masked.original_tokens)
        self.engine.ingest(masked.tokens)

        dynamic_token_values = dict(masked.masked_tokens)
        dynamic_token_values.update(result.dynamic_token_values)

        record = ParsedLine(
            raw_line=raw_line,
            template_string=result.template_string,
            template_id=result.template_id,
            event_id=self.registry.entry(result.template_id).event_id,
            dynamic_token_values=dynamic_token_values,
        )
        self.report.add_parsed(record)
        return record

    def process_lines(self, lines: Iterable[str]) -> Iterator[ParsedLine]:
        for line in lines:
            yield self.process_line(line)

    def seed(self, lines: Iterable[str]) -> int:
        """
        Warm the n-gram tables with historical lines.

        Runs extraction, masking and ingestion only; nothing is classified or
        registered. Returns the number of lines ingested.
        """
        ingested = 0
        for line in lines:
            masked, skip_reason = self.tokenize(line.rstrip('\r\n'))
            if skip_reason is not None:
                self.report.seed_skipped += 1
                continue
            self.engine.ingest(masked.tokens)
            ingested += 1

        self.report.seeded_lines += ingested
        return ingested

    def seed_file(self, path: str, show_progress: bool = False) -> int:
        lines = read_lines(path, skip_blank=True)
        if show_progress:
            lines = tqdm(lines, desc=f"Seeding from {Path(path).name}", unit=" lines")
        ingested = self.seed(lines)
        logger.info("Seeded %d lines from %s (%d skipped)", ingested, path, self.report.seed_skipped)
        return ingested

    def templates(self) -> List[TemplateEntry]:
        return self.registry.entries()


def parse_partitions(config: LogParserConfig,
                     input_files: Sequence[str],
                     workers: Optional[int] = None,
                     seed_lines: Optional[Sequence[str]] = None,
                     sample_lines: Optional[int] = None
                     ) -> List[Tuple[str, List[ParsedLine], List[TemplateEntry], Dict[str, Any]]]:
    """
    Mine several files in parallel, one private parser per file.

    Template ids are local to each file's parser. Results come back in the
    order of input_files.
    """
    # Validate up front so a bad config fails once, not once per worker
    config.validate()
    LogParser(replace(config, seed_file=None))

    workers = workers or min(len(input_files), os.cpu_count() or 1)
    results: Dict[str, Tuple] = {}

    with ProcessPoolExecutor(max_workers=workers) as executor:
        future_to_file = {
            executor.submit(_parse_partition, config, str(path), seed_lines, sample_lines): str(path)
            for path in input_files
        }

        with tqdm(total=len(input_files), desc="Parsing partitions") as pbar:
            for future in as_completed(future_to_file):
                path = future_to_file[future]
                try:
                    results[path] = future.result()
                finally:
                    pbar.update(1)

    return [results[str(path)] for path in input_files]


def _parse_partition(config: LogParserConfig, path: str,
                     seed_lines: Optional[Sequence[str]],
                     sample_lines: Optional[int]
                     ) -> Tuple[str, List[ParsedLine], List[TemplateEntry], Dict[str, Any]]:
    """Worker entry point; must stay module-level to be picklable."""
    parser = LogParser(config)
    if seed_lines:
        parser.seed(seed_lines)
    records = list(parser.process_lines(read_lines(path, limit=sample_lines)))
    return path, records, parser.templates(), parser.report.get_summary()
