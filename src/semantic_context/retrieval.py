"""
Scoring and ranking for context retrieval.

All functions are pure over their inputs: a fixed index, graph, domain base
and query always produce the same ranking. Sorts are stable, so ties keep
index (insertion) order.
"""

import logging
from collections.abc import Iterable, Sequence

from .domains import DomainKnowledgeBase
from .graph import RelationshipGraph
from .index import SemanticIndex
from .models import (
    DomainMatch,
    HistoricalContext,
    SemanticAnalysis,
    SemanticMatch,
)

log = logging.getLogger(__name__)

SYMBOL_SCORE = 10
CONCEPT_WEIGHT = 5
PATTERN_WEIGHT = 3
COMPLEXITY_BOOST = 1.2
COMPLEXITY_BOOST_THRESHOLD = 5

DOMAIN_CONCEPT_SCORE = 2
DOMAIN_PATTERN_SCORE = 3
DOMAIN_TECHNOLOGY_SCORE = 4

MAX_DEPENDENTS_PER_MATCH = 3
MAX_RELEVANT_HISTORY = 5

# Confidence weights; each term is clamped to [0, 1] first
SEMANTIC_WEIGHT = 0.4
DOMAIN_WEIGHT = 0.3
RELATED_WEIGHT = 0.2
HISTORY_WEIGHT = 0.1


def query_words(query: str, min_length: int = 3) -> list[str]:
    """Lowercased whitespace-separated words at least min_length long."""
    return [w for w in query.lower().split() if len(w) >= min_length]


def _matches(name: str, words: Sequence[str]) -> bool:
    lowered = name.lower()
    return any(w in lowered or lowered in w for w in words)


def explain_relevance(analysis: SemanticAnalysis, symbols: Sequence[str], concepts: Sequence[str]) -> str:
    reasons: list[str] = []
    if symbols:
        reasons.append(f"Contains symbols: {', '.join(symbols[:3])}")
    if concepts:
        reasons.append(f"Related concepts: {', '.join(concepts[:3])}")
    if analysis.patterns:
        reasons.append(f"Uses patterns: {', '.join(p.name for p in analysis.patterns[:2])}")
    return "; ".join(reasons) or "General relevance match"


def score_analysis(analysis: SemanticAnalysis, words: Sequence[str]) -> tuple[float, list[str], list[str]]:
    """Return (score, matched symbol names, matched concept names) for one file."""
    score = 0.0
    matched_symbols: list[str] = []
    matched_concepts: list[str] = []

    for sym in analysis.symbols:
        if _matches(sym.name, words):
            score += SYMBOL_SCORE
            matched_symbols.append(sym.name)

    for concept in analysis.concepts:
        if _matches(concept.name, words):
            score += concept.confidence * CONCEPT_WEIGHT
            matched_concepts.append(concept.name)

    for pattern in analysis.patterns:
        if _matches(pattern.name, words):
            score += pattern.confidence * PATTERN_WEIGHT

    # More complex files tend to be the ones worth reading
    if analysis.complexity.cyclomatic_complexity > COMPLEXITY_BOOST_THRESHOLD:
        score *= COMPLEXITY_BOOST

    return score, matched_symbols, matched_concepts


def find_semantic_matches(index: SemanticIndex, query: str, limit: int = 10) -> list[SemanticMatch]:
    words = query_words(query)
    if not words:
        return []

    matches: list[SemanticMatch] = []
    for path, analysis in index.items():
        score, symbols, concepts = score_analysis(analysis, words)
        if score > 0:
            matches.append(SemanticMatch(
                file_path=path,
                score=score,
                analysis=analysis,
                relevance_reason=explain_relevance(analysis, symbols, concepts),
                matched_concepts=tuple(concepts),
                matched_symbols=tuple(symbols),
            ))

    matches.sort(key=lambda m: m.score, reverse=True)
    return matches[:limit]


def find_related_code(matches: Iterable[SemanticMatch], graph: RelationshipGraph) -> list[str]:
    """Matched files, their direct imports, and up to three dependents each, deduplicated."""
    related: dict[str, None] = {}
    for m in matches:
        related[m.file_path] = None
        rel = graph.get(m.file_path)
        if rel is None:
            continue
        for imp in rel.imports:
            related[imp] = None
        for dep in rel.dependents[:MAX_DEPENDENTS_PER_MATCH]:
            related[dep] = None
    return list(related)


def match_domains(domains: DomainKnowledgeBase, query: str, limit: int = 5) -> list[DomainMatch]:
    words = query_words(query)
    if not words:
        return []

    matches: list[DomainMatch] = []
    for knowledge in domains.domains():
        score = 0
        matched_concepts = [c for c in knowledge.concepts if _matches(c, words)]
        applicable_patterns = [p for p in knowledge.patterns if _matches(p, words)]
        technologies = [t for t in knowledge.technologies if _matches(t, words)]
        score += DOMAIN_CONCEPT_SCORE * len(matched_concepts)
        score += DOMAIN_PATTERN_SCORE * len(applicable_patterns)
        score += DOMAIN_TECHNOLOGY_SCORE * len(technologies)
        if score > 0:
            matches.append(DomainMatch(
                domain=knowledge.name,
                score=score,
                knowledge=knowledge,
                matched_concepts=tuple(matched_concepts),
                applicable_patterns=tuple(applicable_patterns),
            ))

    matches.sort(key=lambda m: m.score, reverse=True)
    return matches[:limit]


def is_history_relevant(item: HistoricalContext, query: str, matched_files: set[str]) -> bool:
    words = set(query_words(query, min_length=4))
    if any(w in words for w in query_words(item.query, min_length=4)):
        return True
    return any(f in matched_files for f in item.files_referenced)


def relevant_history(
    history: Sequence[HistoricalContext],
    query: str,
    matches: Iterable[SemanticMatch],
    limit: int = MAX_RELEVANT_HISTORY,
) -> list[HistoricalContext]:
    """Relevant entries, most recent first; later entries win timestamp ties."""
    matched_files = {m.file_path for m in matches}
    relevant = [h for h in reversed(history) if is_history_relevant(h, query, matched_files)]
    relevant.sort(key=lambda h: h.timestamp, reverse=True)
    return relevant[:limit]


def generate_suggestions(
    matches: Sequence[SemanticMatch],
    domain_matches: Sequence[DomainMatch],
    history: Sequence[HistoricalContext],
    graph: RelationshipGraph,
    limit: int = 5,
) -> list[str]:
    suggestions: list[str] = []

    if matches:
        top = matches[0]
        focus = list(dict.fromkeys(top.matched_symbols or top.matched_concepts))[:2]
        if focus:
            suggestions.append(f"Explore {top.file_path} for {' and '.join(focus)} implementation")
        else:
            suggestions.append(f"Explore {top.file_path}")

        rel = graph.get(top.file_path)
        if rel is not None and rel.imports:
            suggestions.append(f"Check dependencies: {', '.join(rel.imports[:2])}")
        if rel is not None and rel.dependents:
            suggestions.append(f"See usage in: {', '.join(rel.dependents[:2])}")

    if domain_matches:
        top_domain = domain_matches[0]
        if top_domain.knowledge.best_practices:
            practice = top_domain.knowledge.best_practices[0]
            suggestions.append(f"Consider {top_domain.domain} best practice: {practice}")
        if top_domain.applicable_patterns:
            suggestions.append(f"Apply {top_domain.applicable_patterns[0]} pattern for better architecture")

    if history:
        suggestions.append(f'Related to previous query: "{history[0].query[:50]}..."')

    return suggestions[:limit]


def _clamp(value: float) -> float:
    return max(0.0, min(value, 1.0))


def compute_confidence(
    matches: Sequence[SemanticMatch],
    domain_matches: Sequence[DomainMatch],
    related_code: Sequence[str],
    history: Sequence[HistoricalContext],
) -> float:
    confidence = 0.0
    if matches:
        avg_score = sum(m.score for m in matches) / len(matches)
        confidence += _clamp(avg_score / 20) * SEMANTIC_WEIGHT
    if domain_matches:
        confidence += _clamp(domain_matches[0].score / 10) * DOMAIN_WEIGHT
    if related_code:
        confidence += _clamp(len(related_code) / 10) * RELATED_WEIGHT
    if history:
        confidence += HISTORY_WEIGHT
    return _clamp(confidence)
