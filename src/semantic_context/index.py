"""
Semantic index — file path → SemanticAnalysis.

Files are analyzed concurrently, each against its own time budget. Results
are merged only once the whole batch has settled, and the mapping is
published by swapping in a new dict, so readers never observe a half-merged
index.
"""

import logging
import time
from collections.abc import Iterable, Iterator
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait

from .extract import analyze_file, empty_analysis
from .models import SemanticAnalysis, SourceFile

log = logging.getLogger(__name__)


def analyze_batch(
    files: list[SourceFile],
    max_workers: int = 8,
    timeout_s: float | None = None,
) -> list[SemanticAnalysis]:
    """
    Analyze files concurrently, returning one analysis per file in input order.

    timeout_s bounds each file's own analysis, measured from when a worker
    picks it up; time spent queued behind other files does not count. A file
    that overruns it, or whose worker raised, degrades to an empty analysis.
    """
    if not files:
        return []

    workers = max(1, min(max_workers, len(files)))
    started: dict[int, float] = {}

    def run(i: int) -> SemanticAnalysis:
        started[i] = time.monotonic()
        return analyze_file(files[i])

    executors = [ThreadPoolExecutor(max_workers=workers)]
    pending: dict[Future, int] = {executors[0].submit(run, i): i for i in range(len(files))}
    finished: dict[int, Future] = {}
    timed_out: set[int] = set()
    try:
        while pending:
            if timeout_s is None:
                wait(pending)
            else:
                now = time.monotonic()
                deadlines = [started[i] + timeout_s for i in pending.values() if i in started]
                wake = min(deadlines) - now if deadlines else timeout_s
                wait(pending, timeout=max(0.0, min(wake, timeout_s)), return_when=FIRST_COMPLETED)

            now = time.monotonic()
            overdue = False
            for future, i in list(pending.items()):
                if future.done():
                    finished[i] = pending.pop(future)
                elif timeout_s is not None and i in started and now - started[i] >= timeout_s:
                    del pending[future]
                    timed_out.add(i)
                    overdue = True
                    log.warning("Analysis of %s timed out after %.1fs",
                                files[i].relative_path or files[i].path, timeout_s)

            if overdue:
                # Overrun workers stay busy; files still queued move to a fresh pool
                queued = [(future, i) for future, i in pending.items() if future.cancel()]
                if queued:
                    executors.append(ThreadPoolExecutor(max_workers=workers))
                    for future, i in queued:
                        del pending[future]
                        pending[executors[-1].submit(run, i)] = i
    finally:
        for executor in executors:
            executor.shutdown(wait=False, cancel_futures=True)

    results: list[SemanticAnalysis] = []
    for i, f in enumerate(files):
        rel_path = f.relative_path or f.path
        if i in timed_out:
            results.append(empty_analysis(rel_path))
            continue
        try:
            results.append(finished[i].result())
        except Exception as e:
            log.warning("Failed to analyze %s: %s", rel_path, e, exc_info=True)
            results.append(empty_analysis(rel_path))
    return results


class SemanticIndex:
    def __init__(self, max_workers: int = 8, timeout_s: float | None = None) -> None:
        self.max_workers = max_workers
        self.timeout_s = timeout_s
        self._entries: dict[str, SemanticAnalysis] = {}

    def build(self, files: Iterable[SourceFile]) -> None:
        """Replace the whole index with fresh analyses of files."""
        analyses = analyze_batch(list(files), self.max_workers, self.timeout_s)
        self._entries = {a.file_path: a for a in analyses}
        log.info("Semantic index built for %d files", len(self._entries))

    def refresh(self, files: Iterable[SourceFile], removed: Iterable[str] = ()) -> None:
        """
        Re-analyze only the given files and drop the removed paths.
        Every other entry is left untouched.
        """
        analyses = analyze_batch(list(files), self.max_workers, self.timeout_s)
        entries = dict(self._entries)
        for path in removed:
            if entries.pop(path, None) is not None:
                log.debug("Dropped %s from semantic index", path)
        for a in analyses:
            entries[a.file_path] = a
        self._entries = entries
        log.info("Semantic index refreshed %d files (%d indexed)", len(analyses), len(entries))

    def get(self, path: str) -> SemanticAnalysis | None:
        return self._entries.get(path)

    def items(self) -> list[tuple[str, SemanticAnalysis]]:
        return list(self._entries.items())

    def paths(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))
