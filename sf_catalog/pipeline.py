"""Fetch → merge → index orchestration for one catalog run."""

import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

from sf_catalog.catalog import Catalog
from sf_catalog.domain.models import FetchFailure, RunOptions, RunResult
from sf_catalog.exclusion import ExclusionPolicy
from sf_catalog.progress import ProgressTracker
from sf_catalog.sources.base import AuthenticationError, Candidate, ObjectSource, ParseFailure

logger = logging.getLogger(__name__)


def select_candidates(
    candidates: list[Candidate],
    options: RunOptions,
    policy: ExclusionPolicy,
) -> tuple[list[Candidate], int]:
    """(admitted candidates, number rejected by the exclusion policy)."""
    if options.objects:
        wanted = set(options.objects)
        candidates = [c for c in candidates if c.name in wanted]
    admitted = [c for c in candidates if policy.should_admit(c.name)]
    return admitted, len(candidates) - len(admitted)


def _chunks(items: list, size: int) -> list[list]:
    size = max(1, size)
    return [items[i:i + size] for i in range(0, len(items), size)]


def run_pipeline(
    source: ObjectSource,
    catalog_root: str,
    options: RunOptions | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> RunResult:
    """Fetch every admitted candidate from ``source`` and merge it into the catalog.

    Fetches run concurrently within a chunk; merging, writing and index
    updates happen here, one object at a time. A failed fetch is recorded
    and skipped; an ``AuthenticationError`` ends the run.
    """
    options = options or RunOptions()
    policy = ExclusionPolicy.from_options(options.exclude_custom, options.exclude_suffixes)

    admitted, skipped = select_candidates(source.list_candidates(), options, policy)
    total = len(admitted) + skipped
    logger.info('%d candidates, %d admitted, %d excluded', total, len(admitted), skipped)

    tracker = ProgressTracker(catalog_root)
    if options.start_from_index is not None:
        start = options.start_from_index
    elif options.resume:
        start = tracker.resume_index()
    else:
        start = 0
    if start > len(admitted):
        logger.warning('Checkpoint index %d is past the %d candidates; starting over', start, len(admitted))
        start = 0

    catalog = Catalog(catalog_root, version=options.version or source.version, pretty=options.pretty)
    errors: list[FetchFailure] = []
    fetched = written = processed = 0

    chunks = _chunks(list(enumerate(admitted))[start:], options.chunk_size)
    try:
        for chunk_no, chunk in enumerate(chunks, start=1):
            with ThreadPoolExecutor(max_workers=len(chunk)) as executor:
                futures = [(i, c, executor.submit(source.fetch_object, c)) for i, c in chunk]

            for i, candidate, future in futures:
                try:
                    record = future.result()
                    if record is not None:
                        fetched += 1
                        if not record.module and candidate.cloud:
                            record.module = candidate.cloud
                        catalog.admit(record)
                        written += 1
                except AuthenticationError:
                    raise
                except Exception as e:
                    stage = 'parse' if isinstance(e, ParseFailure) else 'fetch'
                    logger.error('Skipping %s: %s', candidate.name, e)
                    errors.append(FetchFailure(name=candidate.name, error=str(e), stage=stage))

                processed += 1
                if options.checkpoint_every and processed % options.checkpoint_every == 0:
                    catalog.flush()
                    tracker.save(i, candidate.name, len(admitted), start + processed)

            logger.info(
                'Progress: %d/%d (chunk %d/%d)', start + processed, len(admitted), chunk_no, len(chunks),
            )
            if chunk_no < len(chunks) and options.chunk_delay > 0:
                sleep(options.chunk_delay)
    except AuthenticationError:
        catalog.flush()
        raise

    catalog.flush()
    tracker.clear()

    return RunResult(
        candidates=total,
        fetched=fetched,
        written=written,
        skipped=skipped,
        errors=errors,
        output_dir=catalog_root,
        resumed_from=start,
    )
