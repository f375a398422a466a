#!/usr/bin/env python3
"""
CLI tool for mining log patterns from message files.

Usage:
    python mine_patterns.py mine --in messages.yaml --db patterns.json
    python mine_patterns.py analyze --db patterns.json
"""

import click
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from tqdm import tqdm

# Add the package to Python path
sys.path.insert(0, os.path.dirname(__file__))

from logpatterns import PatternStore, PatternOptions, ChangeReport, PatternDataError
from logpatterns.io_utils import MessageReader, PatternDatabaseFile, load_options
from logpatterns.models import DEF_MASK_CHAR, literal_ratio


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _merge_reports(total: ChangeReport, report: ChangeReport, offset: int) -> None:
    shifted = report.shifted(offset)
    total.added.extend(shifted.added)
    total.updated.extend(shifted.updated)


@click.group()
def cli():
    """Mine and inspect log message patterns."""


@cli.command()
@click.option('--in', '-i', 'input_file',
              required=True,
              type=click.Path(exists=True, dir_okay=False),
              help='Message file (.yaml list, .jsonl or plain text lines)')
@click.option('--db', '-d',
              required=True,
              type=click.Path(dir_okay=False),
              help='Pattern database JSON file (created if missing)')
@click.option('--append-db',
              type=click.Path(exists=True, dir_okay=False),
              help='Another pattern database to append before mining')
@click.option('--config', '-c', 'config_file',
              type=click.Path(exists=True, dir_okay=False),
              help='YAML or JSON file with pattern options')
@click.option('--mask-char',
              help='Mask character for variable parts')
@click.option('--min-match-ratio',
              type=float,
              help='Minimum alignment ratio for a candidate pattern')
@click.option('--max-unique-match-ratio',
              type=float,
              help='Ratio the best pattern must reach to absorb a message')
@click.option('--no-fast-search',
              is_flag=True,
              help='Skip the exact/substring prepass')
@click.option('--batch-size', '-b',
              type=int,
              default=1000,
              help='Messages per batch (default: 1000)')
@click.option('--report', '-r', 'report_file',
              type=click.Path(dir_okay=False),
              help='Write the change report to this JSON file')
@click.option('--verbose', '-v',
              is_flag=True,
              help='Enable verbose output')
def mine(input_file: str,
         db: str,
         append_db: Optional[str],
         config_file: Optional[str],
         mask_char: Optional[str],
         min_match_ratio: Optional[float],
         max_unique_match_ratio: Optional[float],
         no_fast_search: bool,
         batch_size: int,
         report_file: Optional[str],
         verbose: bool):
    """
    Feed messages into a pattern database.

    Messages are applied in file order, in batches. Each batch may create
    new patterns, refine existing ones and merge poorly rated patterns.

    Examples:

    \b
    # Mine a YAML list of messages into patterns.json
    python mine_patterns.py mine --in messages.yaml --db patterns.json

    \b
    # Plain text log, custom thresholds, change report
    python mine_patterns.py mine --in server.log --db patterns.json \\
        --config options.yaml --report changes.json
    """
    _configure_logging(verbose)

    if batch_size < 1:
        click.echo("Error: Batch size must be positive")
        sys.exit(1)

    try:
        options = load_options(config_file) if config_file else PatternOptions()
        overrides = {
            'mask_char': mask_char,
            'min_match_ratio': min_match_ratio,
            'max_unique_match_ratio': max_unique_match_ratio,
        }
        overrides = {k: v for k, v in overrides.items() if v is not None}
        if no_fast_search:
            overrides['no_fast_search_prepass'] = True
        store = PatternStore(options, **overrides)

        if verbose:
            click.echo(f"Messages: {input_file}")
            click.echo(f"Database: {db}")
            click.echo(f"Options: {store.options.to_dict()}")
            click.echo()

        db_file = PatternDatabaseFile(db)
        existing = db_file.read()
        if existing is not None:
            store.load(existing)
            if verbose:
                click.echo(f"Loaded {len(store)} patterns ({store.total_messages} messages)")

        if append_db:
            extra = PatternDatabaseFile(append_db).read()
            store.load(extra, append=True)
            if verbose:
                click.echo(f"Appended {append_db}: now {len(store)} patterns")

        reader = MessageReader(input_file)
        total_report = ChangeReport()
        processed = 0
        with tqdm(desc="Mining patterns", unit="msg", disable=not verbose) as pbar:
            for batch in reader.batches(batch_size):
                report = store.put_messages(batch)
                _merge_reports(total_report, report, processed)
                processed += len(batch)
                pbar.update(len(batch))

        db_file.write(store.dump())

        if not processed:
            click.echo("No messages found in the input file.")
            click.echo(f"Database saved with {len(store)} patterns: {Path(db).absolute()}")
            return

        if report_file:
            with open(report_file, 'w', encoding='utf-8') as f:
                json.dump(total_report.to_dict(), f, ensure_ascii=False, indent=2)

        click.echo(f"\n✅ Mining completed!")
        click.echo(f"📊 Results:")
        click.echo(f"   • Messages processed: {processed}")
        click.echo(f"   • Patterns added: {len(total_report.added)}")
        click.echo(f"   • Patterns updated: {len(total_report.updated)}")
        click.echo(f"   • Patterns in database: {len(store)}")
        click.echo(f"   • Total messages seen: {store.total_messages}")
        click.echo(f"   • Database file: {Path(db).absolute()}")

    except KeyboardInterrupt:
        click.echo("\n❌ Mining cancelled by user")
        sys.exit(1)
    except (PatternDataError, OSError) as e:
        click.echo(f"\n❌ Error during mining: {e}")
        if verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


@cli.command()
@click.option('--db', '-d',
              required=True,
              type=click.Path(exists=True, dir_okay=False),
              help='Pattern database JSON file')
@click.option('--top', '-n',
              type=int,
              default=10,
              help='Number of best and worst rated patterns to show')
def analyze(db: str, top: int):
    """
    Show statistics about a pattern database.
    """
    try:
        data = PatternDatabaseFile(db).read()
        # Keep the database's own mask character instead of rewriting it
        mask_char = data.get('mask_char') if isinstance(data, dict) else None
        store = PatternStore(mask_char=mask_char or DEF_MASK_CHAR)
        store.load(data)
    except (PatternDataError, OSError) as e:
        click.echo(f"❌ Error analyzing patterns: {e}")
        sys.exit(1)

    records = store.records
    if not records:
        click.echo("No patterns found in the database.")
        return

    mask_char = store.options.mask_char
    click.echo(f"📋 Pattern Analysis for: {db}")
    click.echo(f"=" * 60)
    click.echo(f"Patterns: {len(records)}")
    click.echo(f"Total messages: {store.total_messages}")
    matched = sum(rec.stats.matched for rec in records)
    click.echo(f"Matched messages: {matched}")
    mean_literal = sum(rec.literal_ratio(mask_char) for rec in records) / len(records)
    click.echo(f"Mean literal ratio: {mean_literal:.3f}")
    click.echo()

    ranked = sorted(records, key=lambda rec: rec.stats.rating, reverse=True)

    def show(title, items):
        click.echo(title)
        for i, rec in enumerate(items, 1):
            pattern = rec.pattern
            display_pattern = pattern[:60] + "..." if len(pattern) > 60 else pattern
            click.echo(f"  {i:2}. [{rec.stats.matched:5}x, rating {rec.stats.rating:.4f}] "
                       f"{display_pattern}")
        click.echo()

    show(f"Best Rated Patterns (top {top}):", ranked[:top])
    bad = [rec for rec in ranked if rec.stats.rating < store.options.min_good_matched_stat]
    if bad:
        show(f"Poorly Rated Patterns ({len(bad)}):", bad[-top:])
    masked_out = [rec for rec in records if literal_ratio(rec.pattern, mask_char) < 0.5]
    click.echo(f"Patterns more than half masked: {len(masked_out)}")


if __name__ == '__main__':
    cli()
