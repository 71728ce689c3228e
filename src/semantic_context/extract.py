"""
Lexical analysis of a single JavaScript/TypeScript source file.

Each extractor is an independent pass of compiled patterns over the raw
text. Nothing here builds a syntax tree: the goal is a best-effort index
that biases retrieval, so false positives are tolerated.
"""

import logging
import math
import re
from datetime import datetime, timezone
from pathlib import Path

from .models import (
    ComplexityMetrics,
    Concept,
    Dependency,
    Export,
    Pattern,
    SemanticAnalysis,
    SourceFile,
    Symbol,
)

log = logging.getLogger(__name__)


# ── Symbol patterns ──────────────────────────────────────────────────────────

_CLASS_RE = re.compile(r"class\s+(\w+)(?:\s+extends\s+\w+)?(?:\s+implements\s+[\w,\s]+)?\s*\{")
_FUNCTION_RE = re.compile(r"(?:export\s+)?(?:async\s+)?function\s+(\w+)\s*\(")
_ARROW_RE = re.compile(r"(?:const|let|var)\s+(\w+)\s*=\s*(?:\([^)]*\)\s*=>|[^=]+\s*=>)")
_INTERFACE_RE = re.compile(r"interface\s+(\w+)(?:\s+extends\s+[\w,\s]+)?\s*\{")
_METHOD_RE = re.compile(
    r"(?:private|protected|public)?\s*(?:static\s+)?(?:async\s+)?(\w+)\s*\([^)]*\)\s*(?::\s*[^{]+)?\s*\{"
)

# Call-shaped control flow the method pass would otherwise pick up
_METHOD_DENYLIST = frozenset({"constructor", "if", "for", "while", "switch", "catch"})

# ── Concept vocabulary ───────────────────────────────────────────────────────

# (trigger words, kind, name, base confidence); triggers match as case-sensitive substrings
_CONCEPT_TABLE: tuple[tuple[tuple[str, ...], str, str, float], ...] = (
    (("user", "User", "auth", "login", "register", "account"), "domain", "user-management", 0.8),
    (("service", "Service", "repository", "Repository"), "pattern", "service-layer", 0.9),
    (("log", "logger", "console", "debug", "error"), "infrastructure", "logging", 0.7),
    (("async", "await", "Promise", "then", "catch"), "pattern", "async-programming", 0.8),
    (("database", "db", "sql", "query", "orm"), "infrastructure", "data-persistence", 0.8),
    (("api", "endpoint", "route", "express", "fastify"), "pattern", "web-api", 0.9),
    (("test", "spec", "describe", "it", "expect"), "infrastructure", "testing", 0.9),
    (("config", "env", "settings", "options"), "infrastructure", "configuration", 0.7),
)

# ── Complexity tokens ────────────────────────────────────────────────────────

_CONDITION_RE = re.compile(r"\b(if|for|while|switch|catch|&&|\|\|)\b")
_FUNCTION_TOKEN_RE = re.compile(r"\b(function|=>|async\s+function)\b")

# ── Dependencies and exports ─────────────────────────────────────────────────

_IMPORT_RE = re.compile(r"""import\s+(?:[^'"]*from\s+)?['"]([^'"]+)['"]""")
_REQUIRE_RE = re.compile(r"""require\s*\(\s*['"]([^'"]+)['"]\s*\)""")
_NAMED_EXPORT_RE = re.compile(r"export\s+(const|let|var|function|class|interface|type)\s+(\w+)")
_EXPORT_LIST_RE = re.compile(r"export\s*\{\s*([^}]+)\s*\}")

BUILTIN_MODULES = frozenset({
    "fs", "path", "http", "https", "url", "crypto", "os", "util", "stream",
    "events", "buffer", "child_process", "cluster", "worker_threads",
})


def _line_number(code: str, index: int) -> int:
    return code.count("\n", 0, index) + 1


def extract_symbols(code: str, file_path: str) -> list[Symbol]:
    """Run one pass per symbol kind; results are grouped by pass, in source order."""
    symbols: list[Symbol] = []

    def _collect(regex: re.Pattern, kind: str, scope: str) -> None:
        for m in regex.finditer(code):
            name = m.group(1)
            if kind == "method" and name in _METHOD_DENYLIST:
                continue
            symbols.append(Symbol(
                kind=kind,
                name=name,
                scope=scope,
                file_path=file_path,
                line_number=_line_number(code, m.start(1)),
            ))

    _collect(_CLASS_RE, "class", "global")
    _collect(_FUNCTION_RE, "function", "global")
    _collect(_ARROW_RE, "function", "global")
    _collect(_INTERFACE_RE, "interface", "global")
    _collect(_METHOD_RE, "method", "class")
    return symbols


def extract_concepts(code: str) -> list[Concept]:
    concepts: list[Concept] = []
    for triggers, kind, name, base in _CONCEPT_TABLE:
        matched = sum(1 for word in triggers if word in code)
        if matched:
            concepts.append(Concept(kind=kind, name=name, confidence=base * (matched / len(triggers))))
    return concepts


def extract_patterns(code: str) -> list[Pattern]:
    patterns: list[Pattern] = []

    if "constructor" in code and "private" in code:
        patterns.append(Pattern("oop", "encapsulation", 0.8, "Use of private members and constructors"))

    if "extends" in code or "super" in code:
        patterns.append(Pattern("oop", "inheritance", 0.9, "Class inheritance pattern"))

    if "implements" in code:
        patterns.append(Pattern("oop", "interface-implementation", 0.9, "Interface implementation pattern"))

    if "import" in code and "export" in code:
        patterns.append(Pattern("module", "es6-modules", 0.9, "ES6 module system usage"))

    if "async" in code and "await" in code:
        patterns.append(Pattern("async", "async-await", 0.9, "Modern async/await pattern"))

    if "map" in code or "filter" in code or "reduce" in code:
        patterns.append(Pattern("functional", "array-methods", 0.7, "Functional array manipulation"))

    if "middleware" in code or "next()" in code:
        patterns.append(Pattern("architectural", "middleware", 0.8, "Middleware pattern for request processing"))

    return patterns


def calculate_complexity(code: str) -> ComplexityMetrics:
    lines = sum(1 for line in code.split("\n") if line.strip())
    conditions = len(_CONDITION_RE.findall(code))
    functions = len(_FUNCTION_TOKEN_RE.findall(code))
    cyclomatic = conditions + functions + 1
    # ln(0) is undefined; an empty file contributes no size penalty
    size_penalty = 5.2 * math.log(lines) if lines else 0.0
    maintainability = max(0.0, 171 - size_penalty - 0.23 * cyclomatic)
    return ComplexityMetrics(
        lines=lines,
        conditions=conditions,
        functions=functions,
        cyclomatic_complexity=cyclomatic,
        maintainability_index=maintainability,
    )


def dependency_kind(specifier: str) -> str:
    if specifier.startswith((".", "/")):
        return "local"
    if specifier in BUILTIN_MODULES:
        return "builtin"
    return "external"


def extract_dependencies(code: str) -> list[Dependency]:
    deps: list[Dependency] = []
    for regex in (_IMPORT_RE, _REQUIRE_RE):
        for m in regex.finditer(code):
            spec = m.group(1)
            deps.append(Dependency(path=spec, kind=dependency_kind(spec)))
    return deps


def _export_kind(statement: str) -> str:
    # Substring test over the whole statement, so `export const classNames` is a class
    for kind in ("class", "function", "interface"):
        if kind in statement:
            return kind
    return "variable"


def extract_exports(code: str) -> list[Export]:
    exports: list[Export] = []

    for m in _NAMED_EXPORT_RE.finditer(code):
        exports.append(Export(name=m.group(2), kind=_export_kind(m.group(0))))

    for m in _EXPORT_LIST_RE.finditer(code):
        for item in m.group(1).split(","):
            name = item.strip().split(" as ")[0].strip()
            if name:
                exports.append(Export(name=name, kind="variable"))

    if "export default" in code:
        exports.append(Export(name="default", kind="default"))

    return exports


def analyze_source(file_path: str, code: str) -> SemanticAnalysis:
    """Build the full SemanticAnalysis for already-loaded source text."""
    return SemanticAnalysis(
        file_path=file_path,
        symbols=tuple(extract_symbols(code, file_path)),
        concepts=tuple(extract_concepts(code)),
        patterns=tuple(extract_patterns(code)),
        complexity=calculate_complexity(code),
        dependencies=tuple(extract_dependencies(code)),
        exports=tuple(extract_exports(code)),
        last_analyzed=datetime.now(timezone.utc),
    )


def empty_analysis(file_path: str) -> SemanticAnalysis:
    return SemanticAnalysis(
        file_path=file_path,
        symbols=(),
        concepts=(),
        patterns=(),
        complexity=ComplexityMetrics(lines=0, conditions=0, functions=0, cyclomatic_complexity=1),
        dependencies=(),
        exports=(),
        last_analyzed=datetime.now(timezone.utc),
    )


def analyze_file(file: SourceFile) -> SemanticAnalysis:
    """
    Read and analyze one enumerated file, keyed by its relative path.
    Never raises — an unreadable or unanalyzable file yields an empty analysis.
    """
    rel_path = file.relative_path or file.path
    try:
        code = Path(file.path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        log.debug("Could not read %s for analysis: %s", rel_path, e)
        return empty_analysis(rel_path)

    try:
        return analyze_source(rel_path, code)
    except Exception as e:
        log.warning("Analysis error in %s: %s", rel_path, e, exc_info=True)
        return empty_analysis(rel_path)
