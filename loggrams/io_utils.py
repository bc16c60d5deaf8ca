"""
I/O utilities for log input, JSONL records and CSV reports.
"""

import csv
import json
from itertools import islice
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Type, TypeVar

from .logging import get_logger
from .models import ParsedLine, TemplateEntry


logger = get_logger()

T = TypeVar('T')


def read_lines(path: str, limit: Optional[int] = None, skip_blank: bool = False) -> Iterator[str]:
    """
    Yield lines of a text file without their line endings.

    Blank lines are kept unless skip_blank is set, so that every input line
    gets an output record.
    """
    with open(path, 'r', encoding='utf-8', errors='ignore') as f:
        lines = (line.rstrip('\r\n') for line in f)
        if skip_blank:
            lines = (line for line in lines if line.strip())
        if limit:
            lines = islice(lines, limit)
        yield from lines


class JSONLWriter:
    """
    Writer for JSONL (JSON Lines) format.
    """

    def __init__(self, file_path: str):
        self.file_path = Path(file_path)
        self.file_handle = None

    def __enter__(self):
        self.file_handle = open(self.file_path, 'w', encoding='utf-8')
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.file_handle:
            self.file_handle.close()

    def write(self, item) -> None:
        """Write one dataclass_json object as a line."""
        if not self.file_handle:
            raise ValueError("JSONLWriter not opened")

        json.dump(item.to_dict(), self.file_handle, ensure_ascii=False)
        self.file_handle.write('\n')

    def write_all(self, items: Iterable) -> int:
        count = 0
        for item in items:
            self.write(item)
            count += 1
        return count


class JSONLReader:
    """
    Reader for JSONL (JSON Lines) format.
    """

    def __init__(self, file_path: str, item_type: Type[T] = TemplateEntry):
        self.file_path = Path(file_path)
        self.item_type = item_type

    def read_all(self) -> List[T]:
        return list(self)

    def __iter__(self) -> Iterator[T]:
        if not self.file_path.exists():
            return

        with open(self.file_path, 'r', encoding='utf-8') as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue

                try:
                    yield self.item_type.from_dict(json.loads(line))
                except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                    logger.warning("Skipping invalid record at %s:%d: %s", self.file_path, line_num, e)


CSV_HEADER = [
    'line_number', 'event_id', 'template_id', 'template', 'dynamic_token_values',
    'skip_reason', 'raw_line'
]


def write_records_csv(records: Iterable[ParsedLine], output_path: str) -> int:
    """Write parsed lines as CSV; skipped lines keep empty derived columns."""
    count = 0
    with open(output_path, 'w', newline='', encoding='utf-8') as outfile:
        writer = csv.writer(outfile)
        writer.writerow(CSV_HEADER)

        for line_num, record in enumerate(records, 1):
            values = ''
            if record.dynamic_token_values:
                values = json.dumps(record.dynamic_token_values, ensure_ascii=False)
            writer.writerow([
                line_num,
                record.event_id or '',
                '' if record.template_id is None else record.template_id,
                record.template_string or '',
                values,
                record.skip_reason.value if record.skip_reason else '',
                record.raw_line,
            ])
            count += 1
    return count

