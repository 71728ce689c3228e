"""
File-level relationship graph built with NetworkX.

Nodes are indexed file paths; an edge A → B means A imports B. The graph is
rebuilt from scratch against the current semantic index and handed out as an
immutable RelationshipGraph, so a rebuild is published by swapping one
reference.
"""

import logging
import posixpath

import networkx as nx

from .discover import SOURCE_EXTENSIONS
from .index import SemanticIndex
from .models import CodeRelationship

log = logging.getLogger(__name__)


def relationship_weight(imports: int, exports: int, dependents: int) -> int:
    return 2 * imports + exports + 3 * dependents


def resolve_local_path(from_path: str, specifier: str, index: SemanticIndex) -> str | None:
    """
    Map a local import specifier to an indexed path, or None.

    Tries "<target><ext>" for every recognized extension, then
    "<target>/index<ext>", and returns the first candidate present in the index.
    Specifiers starting with "/" are taken relative to the project root.
    """
    if specifier.startswith("/"):
        target = posixpath.normpath(specifier.lstrip("/"))
    else:
        target = posixpath.normpath(posixpath.join(posixpath.dirname(from_path), specifier))

    for ext in SOURCE_EXTENSIONS:
        candidate = target + ext
        if candidate in index:
            return candidate

    for ext in SOURCE_EXTENSIONS:
        candidate = posixpath.join(target, "index" + ext)
        if candidate in index:
            return candidate

    return None


class RelationshipGraph:
    """Read-only snapshot of the import graph and per-file relationships."""

    def __init__(self, g: nx.DiGraph, relationships: dict[str, CodeRelationship]) -> None:
        self._g = g
        self._relationships = relationships

    def get(self, path: str) -> CodeRelationship | None:
        return self._relationships.get(path)

    def items(self) -> list[tuple[str, CodeRelationship]]:
        return list(self._relationships.items())

    def __len__(self) -> int:
        return len(self._relationships)

    def number_of_edges(self) -> int:
        return self._g.number_of_edges()

    def cycles(self) -> list[list[str]]:
        """Import cycles: strongly connected components spanning more than one file."""
        cycles: list[list[str]] = []
        for scc in nx.strongly_connected_components(self._g):
            if len(scc) > 1:
                cycles.append(sorted(scc))
        cycles.sort()
        return cycles


def build_relationships(index: SemanticIndex) -> RelationshipGraph:
    """Build the full graph from the current index contents."""
    g: nx.DiGraph = nx.DiGraph()

    entries = index.items()
    for path, _analysis in entries:
        g.add_node(path)

    # Forward edges first, in index order, so successor/predecessor order is reproducible
    unresolved = 0
    for path, analysis in entries:
        for dep in analysis.dependencies:
            if dep.kind != "local":
                continue
            target = resolve_local_path(path, dep.path, index)
            if target is None:
                unresolved += 1
                log.debug("Unresolved import %r in %s", dep.path, path)
                continue
            g.add_edge(path, target)

    relationships: dict[str, CodeRelationship] = {}
    for path, analysis in entries:
        imports = tuple(g.successors(path))
        dependents = tuple(g.predecessors(path))
        relationships[path] = CodeRelationship(
            imports=imports,
            exports=analysis.exports,
            dependents=dependents,
            weight=relationship_weight(len(imports), len(analysis.exports), len(dependents)),
        )

    log.info(
        "Relationship graph: %d files, %d import edges (%d unresolved)",
        g.number_of_nodes(), g.number_of_edges(), unresolved,
    )
    return RelationshipGraph(g, relationships)
