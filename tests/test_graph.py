from semantic_context.discover import discover_files
from semantic_context.graph import build_relationships, relationship_weight, resolve_local_path
from semantic_context.index import SemanticIndex

from conftest import write_project


def _index(root, files):
    write_project(root, files)
    index = SemanticIndex(max_workers=2)
    index.build(discover_files(root))
    return index


def test_resolution_order(tmp_path):
    index = _index(tmp_path, {
        "src/app.ts": "import x from './models';\nimport y from '../lib/util';\nimport z from '/shared/db';",
        "src/models/index.ts": "export const User = 1;",
        "lib/util.js": "export function util() {}",
        "shared/db.ts": "export const db = 1;",
    })

    assert resolve_local_path("src/app.ts", "./models", index) == "src/models/index.ts"
    assert resolve_local_path("src/app.ts", "../lib/util", index) == "lib/util.js"
    assert resolve_local_path("src/app.ts", "/shared/db", index) == "shared/db.ts"
    assert resolve_local_path("src/app.ts", "./missing", index) is None


def test_extension_candidates_win_over_index_file(tmp_path):
    index = _index(tmp_path, {
        "a.ts": "import m from './models';",
        "models.js": "",
        "models/index.ts": "",
    })
    assert resolve_local_path("a.ts", "./models", index) == "models.js"


def test_imports_and_dependents_are_symmetric(tmp_path):
    index = _index(tmp_path, {
        "a.ts": "import { b } from './b';\nimport { c } from './c';",
        "b.ts": "import { c } from './c';\nexport const b = 1;",
        "c.ts": "export const c = 2;\nexport default c;",
        "d.ts": "import nope from './nowhere';\nimport React from 'react';",
    })
    graph = build_relationships(index)

    assert graph.get("a.ts").imports == ("b.ts", "c.ts")
    assert graph.get("c.ts").dependents == ("a.ts", "b.ts")
    # unresolved and external imports produce no edges
    assert graph.get("d.ts").imports == ()

    for path, rel in graph.items():
        for target in rel.imports:
            assert path in graph.get(target).dependents
        for source in rel.dependents:
            assert path in graph.get(source).imports


def test_weight_formula(tmp_path):
    index = _index(tmp_path, {
        "a.ts": "import { b } from './b';\nimport { c } from './c';",
        "b.ts": "import { c } from './c';\nexport const b = 1;",
        "c.ts": "export const c = 2;\nexport default c;",
    })
    graph = build_relationships(index)

    for _, rel in graph.items():
        assert rel.weight == 2 * len(rel.imports) + len(rel.exports) + 3 * len(rel.dependents)
    assert graph.get("c.ts").weight == 0 + 2 + 3 * 2
    assert relationship_weight(1, 1, 1) == 6


def test_duplicate_imports_collapse_to_one_edge(tmp_path):
    index = _index(tmp_path, {
        "a.ts": "import { b } from './b';\nconst b2 = require('./b');",
        "b.ts": "",
    })
    graph = build_relationships(index)
    assert graph.get("a.ts").imports == ("b.ts",)
    assert graph.get("b.ts").dependents == ("a.ts",)


def test_cycles(tmp_path):
    index = _index(tmp_path, {
        "a.ts": "import x from './b';",
        "b.ts": "import y from './a';",
        "c.ts": "import z from './a';",
    })
    graph = build_relationships(index)
    assert graph.cycles() == [["a.ts", "b.ts"]]
    assert graph.number_of_edges() == 3


def test_empty_index():
    graph = build_relationships(SemanticIndex())
    assert len(graph) == 0
    assert graph.get("a.ts") is None
