"""
Command line interface for mining templates from log files.

Usage:
    loggrams parse --log-format '<date> <time> <message>' --in server.log --out parsed.jsonl
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .config import ConfigError, LogParserConfig
from .io_utils import JSONLReader, JSONLWriter, read_lines, write_records_csv
from .logging import setup_logger
from .models import TemplateEntry
from .parser import LogParser, parse_partitions


@click.group()
@click.version_option(package_name="loggrams")
def cli():
    """Mine log templates online from n-gram statistics."""


@cli.command()
@click.option('--config', '-c', 'config_file',
              type=click.Path(exists=True, dir_okay=False),
              help='JSON config file (options below override its values)')
@click.option('--log-format', '-f',
              help='Line format with <name> placeholders (default: "<date> <time> <message>")')
@click.option('--content-field',
              help='Placeholder holding the message to mine (default: message)')
@click.option('--regex', '-r', 'regexes',
              multiple=True,
              help='Extra pattern to mask as dynamic, applied before built-ins (repeatable)')
@click.option('--threshold', '-t',
              type=float,
              help='Dynamic token threshold in [0, 1] (default: 0.5)')
@click.option('--max-gram-dict-size',
              type=int,
              help='Capacity of each n-gram table (default: 10000)')
@click.option('--seed-file',
              type=click.Path(exists=True, dir_okay=False),
              help='Historical lines used to warm the n-gram tables')
@click.option('--input', '--in', 'input_files',
              required=True,
              multiple=True,
              type=click.Path(exists=True, dir_okay=False),
              help='Input log file; several files are mined as independent partitions')
@click.option('--output', '--out', 'output_file',
              required=True,
              type=click.Path(),
              help='Output file for parsed records')
@click.option('--format', 'output_format',
              type=click.Choice(['jsonl', 'csv', 'summary']),
              default='jsonl',
              help='Output format (default: jsonl)')
@click.option('--templates-out',
              type=click.Path(),
              help='Also write the mined templates as JSONL')
@click.option('--workers', '-w',
              type=int,
              default=None,
              help='Parallel workers when several input files are given (default: auto)')
@click.option('--sample-lines',
              type=int,
              help='Process only first N lines of each input (for testing)')
@click.option('--verbose', '-v',
              is_flag=True,
              help='Enable verbose output')
def parse(config_file: Optional[str],
          log_format: Optional[str],
          content_field: Optional[str],
          regexes: tuple,
          threshold: Optional[float],
          max_gram_dict_size: Optional[int],
          seed_file: Optional[str],
          input_files: tuple,
          output_file: str,
          output_format: str,
          templates_out: Optional[str],
          workers: Optional[int],
          sample_lines: Optional[int],
          verbose: bool):
    """
    Mine templates from log lines.

    Every line is split by the log format, its content field is masked and
    tokenized, and each token is classified static or dynamic from the
    n-gram statistics of the lines before it.

    Examples:

    \b
    # Single file, JSONL output
    loggrams parse -f '<date> <time> <level> <message>' --in app.log --out parsed.jsonl

    \b
    # Warm up on yesterday's log, mask request ids
    loggrams parse -f '<date> <time> <message>' --seed-file old.log \\
        -r 'req-[0-9a-f]+' --in app.log --out parsed.csv --format csv

    \b
    # Two hosts mined in parallel, one parser each
    loggrams parse -c pilar.json --in host1.log --in host2.log --out summary.txt --format summary
    """
    setup_logger(logging.DEBUG if verbose else logging.WARNING)

    try:
        config = LogParserConfig.from_file(config_file) if config_file else LogParserConfig()
        config = config.merged(
            log_format=log_format,
            content_field=content_field,
            regexes=list(regexes) if regexes else None,
            dynamic_token_threshold=threshold,
            maximum_gram_dict_size=max_gram_dict_size,
            seed_file=seed_file,
        )

        if verbose:
            click.echo(f"Log format: {config.log_format}")
            click.echo(f"Content field: {config.content_field}")
            click.echo(f"Regexes: {config.regexes}")
            click.echo(f"Threshold: {config.dynamic_token_threshold}")
            click.echo(f"Max gram dict size: {config.maximum_gram_dict_size}")
            click.echo(f"Seed file: {config.seed_file or '-'}")
            click.echo()

        if len(input_files) == 1:
            parser = LogParser(config)
            records = list(parser.process_lines(read_lines(input_files[0], limit=sample_lines)))
            partitions = [(input_files[0], records, parser.templates(), parser.report.get_summary())]
        else:
            partitions = parse_partitions(config, input_files, workers=workers,
                                          sample_lines=sample_lines)

    except ConfigError as e:
        click.echo(f"Error: invalid configuration: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\n❌ Parsing cancelled by user")
        sys.exit(1)

    output_path = Path(output_file)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    all_records = [record for _, records, _, _ in partitions for record in records]

    if output_format == 'jsonl':
        with JSONLWriter(str(output_path)) as writer:
            writer.write_all(all_records)
    elif output_format == 'csv':
        write_records_csv(all_records, str(output_path))
    elif output_format == 'summary':
        _write_summary(partitions, output_path)

    if templates_out:
        templates_path = Path(templates_out)
        templates_path.parent.mkdir(parents=True, exist_ok=True)
        with JSONLWriter(str(templates_path)) as writer:
            for _, _, templates, _ in partitions:
                writer.write_all(templates)

    click.echo(f"\n✅ Parsing completed!")
    click.echo(f"📊 Results:")
    for path, _, templates, summary in partitions:
        click.echo(f"   • {path}: {summary['parsed_lines']}/{summary['total_lines']} lines parsed, "
                   f"{summary['skipped_lines']} skipped, {len(templates)} templates")
    click.echo(f"   • Output file: {output_path.absolute()}")

    if verbose:
        for path, _, _, summary in partitions:
            if summary['skipped_samples']:
                click.echo(f"\n🔍 Sample skipped lines from {path}:")
                for i, sample in enumerate(summary['skipped_samples'][:5], 1):
                    click.echo(f"   {i}. {sample}")


def _write_summary(partitions, output_path: Path) -> None:
    with open(output_path, 'w', encoding='utf-8') as outfile:
        outfile.write("LOG TEMPLATE MINING SUMMARY REPORT\n")
        outfile.write("=" * 50 + "\n\n")

        for path, _, templates, summary in partitions:
            outfile.write(f"Input file: {path}\n")
            outfile.write(f"Total lines processed: {summary['total_lines']}\n")
            outfile.write(f"Parsed lines: {summary['parsed_lines']}\n")
            outfile.write(f"Skipped lines: {summary['skipped_lines']}\n")
            for reason, count in sorted(summary['skipped_by_reason'].items()):
                outfile.write(f"  {reason}: {count}\n")
            outfile.write(f"Parse rate: {summary['parse_rate']:.1f}%\n")
            outfile.write(f"Seeded lines: {summary['seeded_lines']}\n")
            outfile.write(f"Templates: {len(templates)}\n\n")

            if templates:
                outfile.write("TEMPLATES BY OCCURRENCES:\n")
                outfile.write("-" * 25 + "\n")
                ranked = sorted(templates, key=lambda t: (-t.occurrences, t.template_id))
                for entry in ranked:
                    outfile.write(f"{entry.event_id},{entry.template_string},{entry.occurrences}\n")
                outfile.write("\n")

            if summary['score_histogram']:
                outfile.write("FREQUENCY SCORE HISTOGRAM:\n")
                outfile.write("-" * 25 + "\n")
                for score, count in summary['score_histogram'].items():
                    outfile.write(f"{score:.4f}: {count}\n")
                outfile.write("\n")

            if summary['skipped_samples']:
                outfile.write("SAMPLE SKIPPED LINES:\n")
                outfile.write("-" * 25 + "\n")
                for i, sample in enumerate(summary['skipped_samples'], 1):
                    outfile.write(f"{i:2}. {sample}\n")
                outfile.write("\n")


@cli.command()
@click.option('--templates', '-t',
              required=True,
              type=click.Path(exists=True),
              help='Path to templates JSONL file')
@click.option('--top',
              type=int,
              default=10,
              help='Number of most frequent templates to show')
def templates(templates: str, top: int):
    """
    Analyze mined templates and show statistics.
    """
    template_list = JSONLReader(templates, TemplateEntry).read_all()

    if not template_list:
        click.echo("No templates found in the file.")
        return

    total_occurrences = sum(t.occurrences for t in template_list)
    click.echo(f"📋 Template Analysis for: {templates}")
    click.echo(f"=" * 60)
    click.echo(f"Total templates: {len(template_list)}")
    click.echo(f"Total occurrences: {total_occurrences}")
    click.echo()

    click.echo(f"Most Common Templates (top {top}):")
    ranked = sorted(template_list, key=lambda t: (-t.occurrences, t.template_id))
    for i, entry in enumerate(ranked[:top], 1):
        pattern = entry.template_string.strip()
        display_pattern = pattern[:60] + "..." if len(pattern) > 60 else pattern
        click.echo(f"  {i:2}. [{entry.occurrences:5}x] {entry.event_id} {display_pattern}")


def main():
    cli()


if __name__ == '__main__':
    main()
