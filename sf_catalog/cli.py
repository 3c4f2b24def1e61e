"""CLI for sf-catalog."""

import argparse
import logging
import os
import sys

from sf_catalog.config import (
    CHECKPOINT_EVERY,
    CHUNK_DELAY_SECONDS,
    CHUNK_SIZE,
    DESCRIBE_BATCH_SIZE,
    DOCUMENTATION_SETS,
    FETCH_TIMEOUT_SECONDS,
    GLOBAL_DESCRIBE_FILE,
    SalesforceConnectionConfig,
    documentation_ids_for,
)
from sf_catalog.domain.models import RunOptions, RunResult
from sf_catalog.exclusion import ExclusionPolicy
from sf_catalog.maintenance.audit import audit_catalog
from sf_catalog.maintenance.custom_fields import remove_custom_fields
from sf_catalog.maintenance.key_prefixes import KeyPrefixError, apply_key_prefixes, load_key_prefixes
from sf_catalog.maintenance.purge import purge
from sf_catalog.maintenance.rebuild import rebuild_indexes
from sf_catalog.output.json_writer import JSONWriter
from sf_catalog.pipeline import run_pipeline
from sf_catalog.sources.base import AuthenticationError, FetchError
from sf_catalog.sources.describe_source import DescribeSource
from sf_catalog.sources.docs_source import DocumentationSource


def _split(value: str | None) -> list[str] | None:
    if not value:
        return None
    return [v.strip() for v in value.split(',') if v.strip()]


def _policy(args) -> ExclusionPolicy:
    suffixes = _split(args.exclude_suffixes)
    return ExclusionPolicy.from_options(
        exclude_custom=not args.include_custom,
        exclude_suffixes=set(suffixes) if suffixes is not None else None,
    )


def _run_options(args, chunk_size: int) -> RunOptions:
    policy = _policy(args)
    return RunOptions(
        objects=_split(args.objects),
        exclude_custom=policy.exclude_custom,
        exclude_suffixes=policy.exclude_suffixes,
        chunk_size=chunk_size,
        chunk_delay=args.delay,
        checkpoint_every=args.checkpoint_every,
        resume=not args.no_resume,
        start_from_index=args.start_from,
        version=args.catalog_version,
        pretty=not args.no_pretty,
    )


def _print_run_result(result: RunResult) -> None:
    if result.resumed_from:
        print(f"Resumed from candidate #{result.resumed_from}")
    print(
        f"Done! {result.candidates} candidates: {result.written} written, "
        f"{result.skipped} excluded, {result.errors_count} errors"
    )
    for failure in result.errors[:20]:
        print(f"  ✗ {failure.name} ({failure.stage}): {failure.error}")
    if result.errors_count > 20:
        print(f"  … and {result.errors_count - 20} more")
    print(f"Output: {result.output_dir}")


def _add_selection_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--include-custom', action='store_true', help='Keep custom (__) objects and fields')
    parser.add_argument(
        '--exclude-suffixes',
        help='Comma-separated name suffixes to exclude (default: History,Event,Feed,Share)',
    )


def _add_run_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('output', help='Catalog directory')
    parser.add_argument('--objects', help='Comma-separated object names to process (default: all)')
    _add_selection_args(parser)
    parser.add_argument('--delay', type=float, default=CHUNK_DELAY_SECONDS, help='Seconds between chunks')
    parser.add_argument('--timeout', type=float, default=FETCH_TIMEOUT_SECONDS, help='Per-request timeout')
    parser.add_argument('--checkpoint-every', type=int, default=CHECKPOINT_EVERY,
                        help='Flush indexes and save progress every N objects')
    parser.add_argument('--no-resume', action='store_true', help='Ignore any saved progress')
    parser.add_argument('--start-from', type=int, help='Start at this candidate index')
    parser.add_argument('--catalog-version', help='Version recorded in index.json')
    parser.add_argument('--no-pretty', action='store_true', help='Disable pretty printing')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='sf-catalog', description='Salesforce object reference catalog')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command')

    # scrape command
    scrape_parser = subparsers.add_parser('scrape', help='Scrape the developer documentation')
    _add_run_args(scrape_parser)
    scrape_parser.add_argument('--docs', help='Comma-separated documentation ids or cloud labels (default: all)')
    scrape_parser.add_argument('--chunk-size', type=int, default=CHUNK_SIZE, help='Concurrent fetches per chunk')

    # describe command
    describe_parser = subparsers.add_parser('describe', help='Enrich the catalog from a live org')
    _add_run_args(describe_parser)
    describe_parser.add_argument('--env-file', help='Path to a .env file with SF_* settings')
    describe_parser.add_argument('--batch-size', type=int, help='Concurrent describes per batch (default: SF_BATCH_SIZE or 10)')

    # rebuild command
    rebuild_parser = subparsers.add_parser('rebuild', help='Rebuild index.json and cloud indexes from the store')
    rebuild_parser.add_argument('output', help='Catalog directory')
    rebuild_parser.add_argument('--catalog-version', help='Version recorded in index.json')
    rebuild_parser.add_argument('--no-pretty', action='store_true', help='Disable pretty printing')

    # purge command
    purge_parser = subparsers.add_parser('purge', help='Delete excluded objects and rebuild the indexes')
    purge_parser.add_argument('output', help='Catalog directory')
    _add_selection_args(purge_parser)
    purge_parser.add_argument('--dry-run', action='store_true', help='Report without deleting')

    # key-prefixes command
    prefix_parser = subparsers.add_parser('key-prefixes', help='Set keyPrefix on stored objects from a saved global describe')
    prefix_parser.add_argument('output', help='Catalog directory')
    prefix_parser.add_argument('--describe-file', help=f'Global describe JSON (default: <output>/{GLOBAL_DESCRIBE_FILE})')

    # strip-custom-fields command
    strip_parser = subparsers.add_parser('strip-custom-fields', help='Remove custom (__c/__r) fields from stored objects')
    strip_parser.add_argument('output', help='Catalog directory')
    strip_parser.add_argument('--dry-run', action='store_true', help='Report without rewriting')

    # audit command
    audit_parser = subparsers.add_parser('audit', help='Check store and index consistency')
    audit_parser.add_argument('output', help='Catalog directory')
    audit_parser.add_argument('--fix', action='store_true', help='Run the rebuild when a check fails')

    # clouds command
    subparsers.add_parser('clouds', help='List configured documentation sets')

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )

    if args.command == 'scrape':
        doc_ids = documentation_ids_for(_split(args.docs))
        if not doc_ids:
            print(f"Error: no documentation set matches {args.docs!r}", file=sys.stderr)
            sys.exit(1)
        source = DocumentationSource(doc_ids, timeout=args.timeout)
        print(f"Scraping {len(doc_ids)} documentation set(s) into {args.output}...")
        result = run_pipeline(source, args.output, _run_options(args, args.chunk_size))
        _print_run_result(result)

    elif args.command == 'describe':
        config = SalesforceConnectionConfig.from_env(args.env_file)
        batch_size = args.batch_size or int(os.environ.get('SF_BATCH_SIZE', DESCRIBE_BATCH_SIZE))
        options = _run_options(args, batch_size)
        source = DescribeSource(
            config,
            policy=ExclusionPolicy.from_options(options.exclude_custom, options.exclude_suffixes),
            timeout=args.timeout,
        )
        try:
            result = run_pipeline(source, args.output, options)
        except AuthenticationError as e:
            print(f"Authentication failed: {e}", file=sys.stderr)
            sys.exit(1)
        except FetchError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        if source.global_describe:
            JSONWriter(pretty=options.pretty).write(
                os.path.join(args.output, GLOBAL_DESCRIBE_FILE), source.global_describe,
            )
        _print_run_result(result)

    elif args.command == 'rebuild':
        result = rebuild_indexes(args.output, version=args.catalog_version, pretty=not args.no_pretty)
        print(f"Rebuilt: {result.total_objects} objects, {result.total_clouds} clouds")
        if result.entries_removed:
            print(f"Removed {len(result.entries_removed)} stale index entries")
        print("Indexes updated" if result.changed else "Indexes already up to date")

    elif args.command == 'purge':
        policy = _policy(args)
        result = purge(args.output, policy.should_remove, dry_run=args.dry_run)
        verb = 'Would delete' if result.dry_run else 'Deleted'
        print(f"{verb} {len(result.files_deleted)} object files")
        for path in result.files_deleted[:20]:
            print(f"  {path}")
        print(f"Index entries removed: {len(result.index_entries_removed)}")
        if not result.dry_run:
            print(f"Cloud indexes adjusted: {len(result.cloud_indexes_adjusted)}")

    elif args.command == 'key-prefixes':
        describe_file = args.describe_file or os.path.join(args.output, GLOBAL_DESCRIBE_FILE)
        try:
            prefixes = load_key_prefixes(describe_file)
        except KeyPrefixError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        result = apply_key_prefixes(args.output, prefixes)
        print(f"Key prefixes set on {len(result.updated)} objects")
        print(f"{len(result.without_prefix)} stored objects have no key prefix in the global describe")

    elif args.command == 'strip-custom-fields':
        result = remove_custom_fields(args.output, dry_run=args.dry_run)
        verb = 'Would remove' if result.dry_run else 'Removed'
        print(f"{verb} {result.total_removed} custom fields from {len(result.fields_removed)} objects")
        for name, fields in list(result.fields_removed.items())[:20]:
            print(f"  {name}: {', '.join(fields)}")

    elif args.command == 'audit':
        checks = audit_catalog(args.output)
        print(f"{'Check':<30} {'Status':<8} {'Detail'}")
        print("-" * 80)
        for check in checks:
            status = "✅ PASS" if check.ok else "❌ FAIL"
            print(f"{check.name:<30} {status:<8} {check.detail}")
        print("-" * 80)
        if all(c.ok for c in checks):
            print("\n✅ All checks passed!")
        elif args.fix:
            result = rebuild_indexes(args.output)
            print(f"\nRebuilt indexes: {result.total_objects} objects, {result.total_clouds} clouds")
        else:
            print("\n❌ Some checks failed! Run with --fix or `sf-catalog rebuild` to repair.")
            sys.exit(1)

    elif args.command == 'clouds':
        for doc_id, entry in DOCUMENTATION_SETS.items():
            print(f"  {entry['label']:<32} {doc_id}")

    else:
        parser.print_help()


if __name__ == '__main__':
    main()
