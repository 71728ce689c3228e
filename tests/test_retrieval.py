import pytest

from semantic_context.domains import DEFAULT_DOMAINS, DomainKnowledgeBase
from semantic_context.graph import build_relationships
from semantic_context.index import SemanticIndex
from semantic_context.models import ContextUsage, HistoricalContext, SourceFile
from semantic_context.retrieval import (
    compute_confidence,
    find_related_code,
    find_semantic_matches,
    generate_suggestions,
    match_domains,
    query_words,
    relevant_history,
    score_analysis,
)
from semantic_context.extract import analyze_source

from conftest import write_project


def _history(query, ts, files=()):
    return HistoricalContext(
        timestamp=ts,
        query=query,
        result="",
        files_referenced=tuple(files),
        context_used=ContextUsage(0, 0, len(files)),
    )


@pytest.fixture
def hub_index(tmp_path):
    write_project(tmp_path, {
        "cart.ts": "import { price } from './price';\nexport function addToCart(item) {}",
        "price.ts": "export function price(item) {}",
        "c1.ts": "import { price } from './price';",
        "c2.ts": "import { price } from './price';",
        "c3.ts": "import { price } from './price';",
        "c4.ts": "import { price } from './price';",
    })
    index = SemanticIndex()
    index.build(
        SourceFile(str(tmp_path / name), name, "typescript")
        for name in ("cart.ts", "price.ts", "c1.ts", "c2.ts", "c3.ts", "c4.ts")
    )
    return index


def test_query_words():
    assert query_words("How to ADD an item") == ["how", "add", "item"]
    assert query_words("How to add an item", min_length=4) == ["item"]
    assert query_words("a b") == []


def test_symbol_and_concept_scoring():
    analysis = analyze_source("u.ts", "function loadUser(id) { return id; }")
    score, symbols, concepts = score_analysis(analysis, ["user"])
    assert "loadUser" in symbols
    # every symbol named loadUser scores 10; the user-management concept adds confidence * 5
    um = next(c for c in analysis.concepts if c.name == "user-management")
    assert score == pytest.approx(10 * len(symbols) + um.confidence * 5)
    assert concepts == ["user-management"]


def test_complexity_boost():
    branches = "\n".join(f"if (x{i}) {{}}" for i in range(6))
    analysis = analyze_source("b.ts", f"function checkout() {{\n{branches}\n}}")
    assert analysis.complexity.cyclomatic_complexity > 5
    score, symbols, _ = score_analysis(analysis, ["checkout"])
    assert score == pytest.approx(10 * len(symbols) * 1.2)


def test_semantic_matches_sorted_and_truncated(hub_index):
    matches = find_semantic_matches(hub_index, "price cart", limit=10)
    # equal scores keep index order
    assert [m.file_path for m in matches] == ["cart.ts", "price.ts"]
    assert len(find_semantic_matches(hub_index, "price cart", limit=1)) == 1
    assert find_semantic_matches(hub_index, "zz", limit=10) == []


def test_related_code_limits_dependents(hub_index):
    graph = build_relationships(hub_index)
    matches = [m for m in find_semantic_matches(hub_index, "price") if m.file_path == "price.ts"]
    related = find_related_code(matches, graph)
    # the file itself plus the first three of its five dependents
    assert related == ["price.ts", "cart.ts", "c1.ts", "c2.ts"]


def test_related_code_includes_imports(hub_index):
    graph = build_relationships(hub_index)
    matches = [m for m in find_semantic_matches(hub_index, "addtocart")]
    assert find_related_code(matches, graph) == ["cart.ts", "price.ts"]


def test_domain_matching_scores():
    kb = DomainKnowledgeBase()
    (match,) = match_domains(kb, "express middleware api")
    assert match.domain == "web-development"
    # concepts api + middleware (2 each), pattern middleware-chain (3), technology express (4)
    assert match.score == 11
    assert set(match.matched_concepts) == {"api", "middleware"}
    assert match.applicable_patterns == ("middleware-chain",)


def test_domain_matches_sorted_and_limited():
    kb = DomainKnowledgeBase()
    matches = match_domains(kb, "jwt caching jest")
    assert [m.score for m in matches] == sorted((m.score for m in matches), reverse=True)
    assert len(match_domains(kb, "jwt caching jest", limit=1)) == 1


def test_domain_base_rejects_duplicates():
    with pytest.raises(ValueError):
        DomainKnowledgeBase(DEFAULT_DOMAINS + DEFAULT_DOMAINS[:1])


def test_history_relevance_by_shared_word_and_by_file(hub_index):
    matches = find_semantic_matches(hub_index, "price")
    history = [
        _history("how is price computed", 1.0),
        _history("unrelated thing", 2.0, files=["price.ts"]),
        _history("nothing here", 3.0),
    ]
    relevant = relevant_history(history, "price", matches)
    assert [h.query for h in relevant] == ["unrelated thing", "how is price computed"]


def test_history_short_words_do_not_count():
    history = [_history("fix the bug", 1.0)]
    assert relevant_history(history, "the bug", []) == []


def test_history_ties_prefer_latest_entry():
    history = [_history("order first", 5.0), _history("order second", 5.0)]
    relevant = relevant_history(history, "order", [], limit=5)
    assert [h.query for h in relevant] == ["order second", "order first"]


def test_suggestions_priority_and_limit(hub_index):
    graph = build_relationships(hub_index)
    matches = find_semantic_matches(hub_index, "addtocart")
    domains = match_domains(DomainKnowledgeBase(), "express middleware")
    history = [_history("earlier cart question", 1.0)]

    suggestions = generate_suggestions(matches, domains, history, graph, limit=10)
    assert suggestions[0].startswith("Explore cart.ts for addToCart")
    assert suggestions[1] == "Check dependencies: price.ts"
    assert suggestions[2] == "Consider web-development best practice: Use proper HTTP status codes"
    assert suggestions[3] == "Apply middleware-chain pattern for better architecture"
    assert suggestions[4].startswith('Related to previous query: "earlier cart question')

    assert len(generate_suggestions(matches, domains, history, graph, limit=2)) == 2


def test_confidence_weights(hub_index):
    assert compute_confidence([], [], [], []) == 0.0
    assert compute_confidence([], [], [], [_history("x", 1.0)]) == pytest.approx(0.1)
    assert compute_confidence([], [], ["a"] * 20, []) == pytest.approx(0.2)

    domains = match_domains(DomainKnowledgeBase(), "express middleware api")
    assert compute_confidence([], domains, [], []) == pytest.approx(0.3)

    matches = find_semantic_matches(hub_index, "price cart addtocart")
    full = compute_confidence(matches, domains, ["a"] * 20, [_history("x", 1.0)])
    assert 0.0 <= full <= 1.0
