"""Core data structures for semantic-context."""

from dataclasses import dataclass, field
from datetime import datetime

DEFAULT_EXCLUDE_DIRS: list[str] = [
    "node_modules", ".git", "dist", "build", "out", "coverage",
    ".next", ".nuxt", ".cache", "tmp", "temp", ".vscode", ".idea",
    "vendor", "bower_components", "__pycache__", ".pytest_cache", ".tox",
    "target", ".turbo", ".parcel-cache", ".yarn", ".pnp.js", ".pnp.cjs",
]


@dataclass(frozen=True)
class SourceFile:
    """One file as supplied by a file enumerator."""
    path: str                   # absolute path on disk
    relative_path: str          # relative to project root, forward slashes
    type: str                   # "typescript" | "javascript" | "tsx" | "jsx" | ""


@dataclass(frozen=True)
class Symbol:
    kind: str                   # "class" | "function" | "interface" | "method" | "variable"
    name: str
    scope: str                  # "global" | "class"
    file_path: str
    line_number: int


@dataclass(frozen=True)
class Concept:
    kind: str                   # "domain" | "pattern" | "infrastructure" | "business"
    name: str                   # e.g. "user-management"
    confidence: float           # 0.0–1.0


@dataclass(frozen=True)
class Pattern:
    kind: str                   # "oop" | "functional" | "async" | "module" | "architectural"
    name: str                   # e.g. "async-await"
    confidence: float
    description: str = ""


@dataclass(frozen=True)
class ComplexityMetrics:
    lines: int                  # non-empty lines
    conditions: int
    functions: int
    cyclomatic_complexity: int  # conditions + functions + 1
    maintainability_index: float | None = None


@dataclass(frozen=True)
class Dependency:
    path: str                   # import specifier as written
    kind: str                   # "local" | "external" | "builtin"


@dataclass(frozen=True)
class Export:
    name: str
    kind: str                   # "class" | "function" | "interface" | "variable" | "default"


@dataclass(frozen=True)
class SemanticAnalysis:
    """Everything the lexical analyzer knows about one file.

    Replaced wholesale when the file is re-analyzed, never patched.
    """
    file_path: str
    symbols: tuple[Symbol, ...]
    concepts: tuple[Concept, ...]
    patterns: tuple[Pattern, ...]
    complexity: ComplexityMetrics
    dependencies: tuple[Dependency, ...]
    exports: tuple[Export, ...]
    last_analyzed: datetime


@dataclass(frozen=True)
class CodeRelationship:
    imports: tuple[str, ...]    # indexed paths this file imports
    exports: tuple[Export, ...]
    dependents: tuple[str, ...] # indexed paths importing this file
    weight: int                 # 2*imports + exports + 3*dependents


@dataclass(frozen=True)
class DomainKnowledge:
    name: str
    concepts: tuple[str, ...]
    patterns: tuple[str, ...]
    technologies: tuple[str, ...]
    best_practices: tuple[str, ...]
    common_issues: tuple[str, ...]


@dataclass(frozen=True)
class SemanticMatch:
    file_path: str
    score: float
    analysis: SemanticAnalysis
    relevance_reason: str
    matched_concepts: tuple[str, ...]
    matched_symbols: tuple[str, ...]


@dataclass(frozen=True)
class DomainMatch:
    domain: str
    score: int
    knowledge: DomainKnowledge
    matched_concepts: tuple[str, ...]
    applicable_patterns: tuple[str, ...]


@dataclass(frozen=True)
class ContextUsage:
    semantic_matches: int
    domain_context: int
    related_files: int


@dataclass(frozen=True)
class HistoricalContext:
    timestamp: float            # seconds since the epoch
    query: str
    result: str
    files_referenced: tuple[str, ...]
    context_used: ContextUsage


@dataclass(frozen=True)
class EnhancedContext:
    semantic_matches: tuple[SemanticMatch, ...]
    related_code: tuple[str, ...]
    domain_context: tuple[DomainMatch, ...]
    historical_context: tuple[HistoricalContext, ...]
    suggestions: tuple[str, ...]
    confidence: float           # 0.0–1.0
    processing_time_ms: float


@dataclass(frozen=True)
class ContextCacheEntry:
    key: str
    context: EnhancedContext
    timestamp: float
    expires_at: float


@dataclass
class EngineConfig:
    max_history_entries: int = 100
    cache_expiration_ms: int = 5 * 60 * 1000
    max_semantic_matches: int = 10
    max_domain_matches: int = 5
    max_suggestions: int = 5
    analysis_timeout_ms: int = 30_000
    enable_caching: bool = True
    enable_historical_tracking: bool = True
    max_workers: int = 8                        # concurrent file analyses
    cache_sweep_interval_ms: int | None = None  # None disables the background sweep
    exclude_dirs: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS))
