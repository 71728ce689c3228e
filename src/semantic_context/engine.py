"""
ContextEngine — wires enumerate → analyze → index → graph → retrieve.

One engine owns one project's semantic index, relationship graph, context
cache and history. Callers never touch those directly: every mutation goes
through initialize(), refresh(), retrieve() or add_to_history().
"""

import dataclasses
import logging
import threading
import time
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

from .cache import ContextCache, cache_key
from .discover import discover_files, is_analyzable
from .domains import DomainKnowledgeBase
from .graph import RelationshipGraph, build_relationships
from .index import SemanticIndex
from .models import (
    CodeRelationship,
    ContextUsage,
    EngineConfig,
    EnhancedContext,
    HistoricalContext,
    SemanticAnalysis,
    SemanticMatch,
    SourceFile,
)
from .retrieval import (
    MAX_RELEVANT_HISTORY,
    compute_confidence,
    find_related_code,
    find_semantic_matches,
    generate_suggestions,
    match_domains,
    relevant_history,
)

log = logging.getLogger(__name__)

Enumerator = Callable[[], Iterable[SourceFile]]


class ContextEngine:
    def __init__(
        self,
        project_root: str | Path,
        config: EngineConfig | None = None,
        enumerator: Enumerator | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.project_root = str(Path(project_root).resolve())
        self.config = config or EngineConfig()
        self._enumerator = enumerator or (
            lambda: discover_files(self.project_root, self.config.exclude_dirs)
        )
        self._clock = clock

        timeout_s = self.config.analysis_timeout_ms / 1000.0 if self.config.analysis_timeout_ms else None
        self._index = SemanticIndex(max_workers=self.config.max_workers, timeout_s=timeout_s)
        self._graph: RelationshipGraph = build_relationships(self._index)
        self._domains: DomainKnowledgeBase | None = None
        self._cache = ContextCache(ttl_ms=self.config.cache_expiration_ms, clock=clock)
        self._history: list[HistoricalContext] = []

        # Serializes initialize/refresh; retrieve only reads published references
        self._write_lock = threading.Lock()
        self._history_lock = threading.Lock()
        # Guards the generation check and cache write against a concurrent refresh
        self._publish_lock = threading.Lock()
        self._generation = 0
        self._ready = False
        self.semantic_match_runs = 0

    # ── lifecycle ───────────────────────────────────────────────────────────

    def initialize(self) -> None:
        """Build the index, domain base and graph. Failures propagate."""
        with self._write_lock:
            if self._ready:
                return
            log.info("Initializing context engine for %s", self.project_root)
            try:
                files = self._eligible(self._enumerator())
                log.info("Analyzing %d source files", len(files))
                if not files:
                    log.warning("No analyzable files found under %s", self.project_root)
                self._domains = DomainKnowledgeBase()
                self._index.build(files)
                # The graph must only see a fully built index
                self._graph = build_relationships(self._index)
            except Exception as e:
                log.error("Failed to initialize context engine: %s", e)
                raise

            if self.config.cache_sweep_interval_ms:
                self._cache.start_sweeper(self.config.cache_sweep_interval_ms)
            self._ready = True
            log.info("Context engine ready: %d files indexed", len(self._index))

    def is_ready(self) -> bool:
        return self._ready

    def close(self) -> None:
        self._cache.stop_sweeper()
        self._cache.clear()
        with self._history_lock:
            self._history = []
        self._ready = False
        log.debug("Context engine closed")

    def __enter__(self) -> "ContextEngine":
        self.initialize()
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _eligible(self, files: Iterable[SourceFile]) -> list[SourceFile]:
        return [f for f in files if is_analyzable(f, self.config.exclude_dirs)]

    def refresh(self, paths: Iterable[str] | None = None) -> None:
        """
        Re-analyze the given relative paths (every indexed path when None),
        rebuild the graph and clear the cache.

        Paths that no longer exist in the enumeration are dropped from the index.
        """
        if not self._ready:
            self.initialize()
            return

        with self._write_lock:
            available = {f.relative_path: f for f in self._eligible(self._enumerator())}
            targets = list(paths) if paths is not None else self._index.paths()

            to_analyze: list[SourceFile] = []
            removed: list[str] = []
            for path in targets:
                if path in available:
                    to_analyze.append(available[path])
                elif path in self._index:
                    removed.append(path)
                else:
                    log.debug("Ignoring refresh of non-analyzable path %s", path)

            self._index.refresh(to_analyze, removed=removed)
            # Build the new graph completely, then publish it in one assignment
            graph = build_relationships(self._index)
            with self._publish_lock:
                self._graph = graph
                self._generation += 1
                self._cache.clear()

    # ── queries ─────────────────────────────────────────────────────────────

    def _effective_config(self, options: Mapping[str, Any] | None) -> EngineConfig:
        if not options:
            return self.config
        return dataclasses.replace(self.config, **dict(options))

    def _require_domains(self) -> DomainKnowledgeBase:
        if self._domains is None:
            raise RuntimeError("Context engine is not initialized")
        return self._domains

    def _semantic_matches(self, query: str, limit: int) -> list[SemanticMatch]:
        self.semantic_match_runs += 1
        return find_semantic_matches(self._index, query, limit)

    def retrieve(self, query: str, options: Mapping[str, Any] | None = None) -> EnhancedContext:
        """Return ranked context for query, from cache when a live entry exists."""
        if not self._ready:
            self.initialize()

        config = self._effective_config(options)
        start = time.perf_counter()

        key = cache_key(query, options)
        if config.enable_caching:
            cached = self._cache.get(key)
            if cached is not None:
                log.debug("Returning cached context for %r", query)
                return cached

        generation = self._generation
        graph = self._graph
        domains = self._require_domains()

        matches = self._semantic_matches(query, config.max_semantic_matches)
        related = find_related_code(matches, graph)
        domain_matches = match_domains(domains, query, config.max_domain_matches)

        history: list[HistoricalContext] = []
        if config.enable_historical_tracking:
            with self._history_lock:
                snapshot = list(self._history)
            history = relevant_history(
                snapshot, query, matches,
                limit=min(MAX_RELEVANT_HISTORY, config.max_history_entries),
            )

        suggestions = generate_suggestions(
            matches, domain_matches, history, graph, limit=config.max_suggestions,
        )
        confidence = compute_confidence(matches, domain_matches, related, history)

        context = EnhancedContext(
            semantic_matches=tuple(matches),
            related_code=tuple(related),
            domain_context=tuple(domain_matches),
            historical_context=tuple(history),
            suggestions=tuple(suggestions),
            confidence=confidence,
            processing_time_ms=(time.perf_counter() - start) * 1000,
        )

        if config.enable_caching:
            with self._publish_lock:
                # A refresh since this query started makes its result stale
                if generation == self._generation:
                    self._cache.set(key, context, ttl_ms=config.cache_expiration_ms)
        return context

    def add_to_history(
        self,
        query: str,
        result: str,
        files_referenced: Iterable[str] = (),
    ) -> None:
        if not self.config.enable_historical_tracking:
            return
        if not self._ready:
            self.initialize()

        files = tuple(files_referenced)
        usage = ContextUsage(
            semantic_matches=len(self._semantic_matches(query, self.config.max_semantic_matches)),
            domain_context=len(match_domains(self._require_domains(), query, self.config.max_domain_matches)),
            related_files=len(files),
        )
        entry = HistoricalContext(
            timestamp=self._clock(),
            query=query,
            result=result,
            files_referenced=files,
            context_used=usage,
        )
        with self._history_lock:
            self._history.append(entry)
            overflow = len(self._history) - self.config.max_history_entries
            if overflow > 0:
                del self._history[:overflow]

    def history(self) -> list[HistoricalContext]:
        with self._history_lock:
            return list(self._history)

    def get_file_analysis(self, path: str) -> SemanticAnalysis | None:
        return self._index.get(path)

    def get_file_relationships(self, path: str) -> CodeRelationship | None:
        return self._graph.get(path)

    # ── stats ───────────────────────────────────────────────────────────────

    def stats(self) -> dict:
        analyses = [a for _, a in self._index.items()]
        relationships = [r for _, r in self._graph.items()]
        domains = self._domains.domains() if self._domains else []
        with self._history_lock:
            history = list(self._history)

        n_files = len(analyses)
        n_rel = len(relationships)
        return {
            "semantic_index": {
                "files": n_files,
                "symbols": sum(len(a.symbols) for a in analyses),
                "concepts": sum(len(a.concepts) for a in analyses),
                "patterns": sum(len(a.patterns) for a in analyses),
                "average_complexity": (
                    sum(a.complexity.cyclomatic_complexity for a in analyses) / n_files if n_files else 0.0
                ),
            },
            "relationships": {
                "files": n_rel,
                "imports": sum(len(r.imports) for r in relationships),
                "exports": sum(len(r.exports) for r in relationships),
                "average_weight": sum(r.weight for r in relationships) / n_rel if n_rel else 0.0,
                "cycles": len(self._graph.cycles()),
            },
            "domain_knowledge": {
                "domains": len(domains),
                "concepts": sum(len(d.concepts) for d in domains),
                "patterns": sum(len(d.patterns) for d in domains),
                "technologies": sum(len(d.technologies) for d in domains),
            },
            "history": {
                "entries": len(history),
                "average_context_usage": (
                    sum(h.context_used.semantic_matches + h.context_used.domain_context for h in history)
                    / len(history) if history else 0.0
                ),
            },
            "cache": {
                "entries": len(self._cache),
                "hits": self._cache.hits,
                "misses": self._cache.misses,
                "hit_rate": self._cache.hit_rate(),
            },
            "semantic_match_runs": self.semantic_match_runs,
        }
