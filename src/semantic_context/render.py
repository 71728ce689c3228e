"""Plain-text rendering of engine results for the CLI and MCP hosts."""

from .models import CodeRelationship, EnhancedContext, SemanticAnalysis


def render_context(ctx: EnhancedContext, query: str = "") -> str:
    lines: list[str] = []
    if query:
        lines.append(f"Context for: {query}")
    lines.append(f"  confidence: {ctx.confidence:.2f}  ({ctx.processing_time_ms:.1f} ms)")

    if ctx.semantic_matches:
        lines.append(f"\nSemantic matches ({len(ctx.semantic_matches)}):")
        for rank, m in enumerate(ctx.semantic_matches, 1):
            lines.append(f"  {rank:2}. {m.file_path:<48} score={m.score:.2f}")
            lines.append(f"      {m.relevance_reason}")
    else:
        lines.append("\nNo semantic matches.")

    if ctx.related_code:
        lines.append(f"\nRelated code ({len(ctx.related_code)}):")
        for path in ctx.related_code:
            lines.append(f"  · {path}")

    if ctx.domain_context:
        lines.append("\nDomains:")
        for d in ctx.domain_context:
            extra = ", ".join(d.matched_concepts + d.applicable_patterns)
            lines.append(f"  {d.domain:<20} score={d.score}" + (f"  ({extra})" if extra else ""))

    if ctx.historical_context:
        lines.append("\nEarlier queries:")
        for h in ctx.historical_context:
            lines.append(f"  ← {h.query}")

    if ctx.suggestions:
        lines.append("\nSuggestions:")
        for s in ctx.suggestions:
            lines.append(f"  - {s}")

    return "\n".join(lines)


def render_analysis(a: SemanticAnalysis) -> str:
    c = a.complexity
    lines = [f"FILE  {a.file_path}"]
    mi = f"{c.maintainability_index:.1f}" if c.maintainability_index is not None else "n/a"
    lines.append(
        f"  lines={c.lines}  conditions={c.conditions}  functions={c.functions}  "
        f"cyclomatic={c.cyclomatic_complexity}  maintainability={mi}"
    )
    if a.symbols:
        lines.append(f"\nSymbols ({len(a.symbols)}):")
        for s in a.symbols:
            lines.append(f"  {s.kind:<10} {s.name:<32} line {s.line_number}")
    if a.concepts:
        lines.append("\nConcepts:")
        for con in a.concepts:
            lines.append(f"  {con.name:<20} {con.kind:<15} {con.confidence:.2f}")
    if a.patterns:
        lines.append("\nPatterns:")
        for p in a.patterns:
            lines.append(f"  {p.name:<26} {p.kind:<14} {p.confidence:.2f}")
    if a.dependencies:
        lines.append("\nDependencies:")
        for d in a.dependencies:
            lines.append(f"  {d.path}  ({d.kind})")
    if a.exports:
        lines.append(f"\nExports: {', '.join(e.name for e in a.exports)}")
    return "\n".join(lines)


def render_relationships(path: str, rel: CodeRelationship) -> str:
    lines = [f"Relationships for: {path}  (weight {rel.weight})"]
    if rel.imports:
        lines.append(f"\nImports ({len(rel.imports)}):")
        lines.extend(f"  → {p}" for p in rel.imports)
    if rel.dependents:
        lines.append(f"\nDependents ({len(rel.dependents)}):")
        lines.extend(f"  ← {p}" for p in rel.dependents)
    if rel.exports:
        lines.append(f"\nExports: {', '.join(e.name for e in rel.exports)}")
    return "\n".join(lines)


def render_stats(stats: dict) -> str:
    idx = stats["semantic_index"]
    rel = stats["relationships"]
    dom = stats["domain_knowledge"]
    cache = stats["cache"]
    return "\n".join([
        f"Files:      {idx['files']}",
        f"Symbols:    {idx['symbols']}",
        f"Concepts:   {idx['concepts']}",
        f"Patterns:   {idx['patterns']}",
        f"Avg cyclomatic complexity: {idx['average_complexity']:.2f}",
        f"Imports:    {rel['imports']}  (avg weight {rel['average_weight']:.2f}, {rel['cycles']} cycles)",
        f"Domains:    {dom['domains']}",
        f"History:    {stats['history']['entries']} entries",
        f"Cache:      {cache['entries']} entries, hit rate {cache['hit_rate']:.0%}",
    ])
