"""
# rplc: core.py

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

Core substitution logic.

Each source is processed by its own job on a shared worker pool:
````
«source» --> load --> replace --> (preview output | write back)
````
Jobs share nothing but the (read-only) replacer,
and results are collected in the original order of the sources.
A source that fails to load or match is reported and skipped,
without affecting the others.
"""

import functools
import mmap
import os
import sys
import warnings
from concurrent.futures import ThreadPoolExecutor
from typing import BinaryIO, NamedTuple, Optional, Union

from rplc.bases import Replacer
from rplc.constants import PREVIEW_SEPARATOR_FORMAT
from rplc.exceptions import InvalidPathException, MatchEngineFailureException, WriteBackException
from rplc.sources import FileSource, Source, StandardInputSource, release_content
from rplc.utilities import encode_text
from rplc.writeback import write_with_temp


class SourceOutcome(NamedTuple):
    source: Source
    content: Optional[Union[mmap.mmap, bytes]]
    replaced: Optional[bytes]
    has_failed: bool = False

    @property
    def status(self) -> str:
        if self.has_failed:
            return 'skipped'

        if self.replaced is None:
            return 'unchanged (no match)'

        return 'replaced'


@functools.lru_cache(maxsize=None)
def get_worker_pool() -> ThreadPoolExecutor:
    """
    Get the process-wide worker pool, sized to the number of processors.
    """
    return ThreadPoolExecutor(max_workers=os.cpu_count() or 1, thread_name_prefix='rplc')


def process_source(replacer: Replacer, source: Source, only_matched: bool, use_colour: bool) -> SourceOutcome:
    try:
        content = source.load()
    except InvalidPathException as invalid_path_exception:
        print(f'error: {invalid_path_exception}', file=sys.stderr)
        return SourceOutcome(source, content=None, replaced=None, has_failed=True)
    except OSError as os_error:
        print(f'error: cannot read `{source.display()}`: {os_error}', file=sys.stderr)
        return SourceOutcome(source, content=None, replaced=None, has_failed=True)
    except Exception as exception:
        print(
            f'error: cannot read `{source.display()}`: {type(exception).__name__}: {exception}',
            file=sys.stderr,
        )
        return SourceOutcome(source, content=None, replaced=None, has_failed=True)

    try:
        replaced = replacer.replace(content, only_matched, use_colour)
    except MatchEngineFailureException as match_engine_failure_exception:
        warnings.warn(f'warning: `{source.display()}` skipped: {match_engine_failure_exception}')
        return SourceOutcome(source, content=content, replaced=None, has_failed=True)
    except Exception as exception:
        # isolate the failure to this source
        warnings.warn(f'warning: `{source.display()}` skipped: {type(exception).__name__}: {exception}')
        return SourceOutcome(source, content=content, replaced=None, has_failed=True)

    return SourceOutcome(source, content=content, replaced=replaced)


def substitute_sources(
    replacer: Replacer,
    sources: list[Source],
    only_matched: bool = False,
    use_colour: bool = False,
) -> list[SourceOutcome]:
    """
    Load and replace every source in parallel, preserving the order of the sources.

    The returned outcomes hold loaded content, which must be released with `release_outcomes(...)`.
    """
    job = functools.partial(process_source, replacer, only_matched=only_matched, use_colour=use_colour)

    return list(get_worker_pool().map(job, sources))


def release_outcomes(outcomes: list[SourceOutcome]):
    for outcome in outcomes:
        if outcome.content is not None:
            release_content(outcome.content)


def write_preview(
    outcomes: list[SourceOutcome],
    output_stream: BinaryIO,
    show_separators: bool,
    only_matched: bool = False,
):
    """
    Write outcomes to a stream, in order.

    A source without a match is written unchanged (or not at all in only-matched mode).
    Skipped sources are omitted.
    """
    for outcome in outcomes:
        if outcome.has_failed:
            continue

        if show_separators:
            output_stream.write(encode_text(PREVIEW_SEPARATOR_FORMAT.format(outcome.source.display())))

        if outcome.replaced is not None:
            output_stream.write(outcome.replaced)
        elif not only_matched:
            output_stream.write(outcome.content)


def try_write_with_temp(path: str, data: bytes) -> Optional[Exception]:
    try:
        write_with_temp(path, data)
    except (InvalidPathException, OSError) as write_error:
        return write_error

    return None


def write_back_outcomes(outcomes: list[SourceOutcome]):
    """
    Write replaced content back to the files it came from.

    Every file is attempted; failures are raised together afterwards as a WriteBackException.
    """
    paths = []
    datas = []
    for outcome in outcomes:
        if isinstance(outcome.source, FileSource) and outcome.replaced is not None:
            paths.append(outcome.source.path)
            datas.append(outcome.replaced)

    write_errors = get_worker_pool().map(try_write_with_temp, paths, datas)
    failed_jobs = [
        (path, write_error)
        for path, write_error in zip(paths, write_errors)
        if write_error is not None
    ]

    if len(failed_jobs) > 0:
        raise WriteBackException(failed_jobs)


def report_outcomes(outcomes: list[SourceOutcome]):
    for outcome in outcomes:
        print(f'info: `{outcome.source.display()}`: {outcome.status}', file=sys.stderr)


def run_substitution(
    replacer: Replacer,
    sources: list[Source],
    preview: bool = False,
    only_matched: bool = False,
    use_colour: bool = False,
    verbose_mode_enabled: bool = False,
    output_stream: Optional[BinaryIO] = None,
):
    """
    Substitute all sources, then either preview the results or write them back.

    Preview is implied whenever standard input is among the sources.
    All memory maps are released before anything is written back,
    since some platforms forbid replacing a file that has a map open.
    """
    if output_stream is None:
        output_stream = sys.stdout.buffer

    is_preview = preview or any(isinstance(source, StandardInputSource) for source in sources)
    outcomes = substitute_sources(replacer, sources, only_matched, use_colour)

    try:
        if verbose_mode_enabled:
            report_outcomes(outcomes)

        if is_preview:
            write_preview(outcomes, output_stream, show_separators=len(sources) > 1, only_matched=only_matched)
            output_stream.flush()
    finally:
        release_outcomes(outcomes)

    if not is_preview:
        write_back_outcomes(outcomes)
