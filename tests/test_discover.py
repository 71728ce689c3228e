from semantic_context.discover import discover_files, is_analyzable
from semantic_context.models import SourceFile

from conftest import write_project


def test_discover_filters_extensions_and_excluded_dirs(tmp_path):
    write_project(tmp_path, {
        "src/app.ts": "",
        "src/view.tsx": "",
        "lib/util.js": "",
        "lib/legacy.cjs": "",
        "README.md": "",
        "node_modules/left-pad/index.js": "",
        "dist/app.js": "",
        "pkg.egg-info/x.js": "",
    })

    found = {f.relative_path: f.type for f in discover_files(tmp_path)}

    assert found == {
        "lib/legacy.cjs": "javascript",
        "lib/util.js": "javascript",
        "src/app.ts": "typescript",
        "src/view.tsx": "tsx",
    }


def test_discover_respects_gitignore(tmp_path):
    write_project(tmp_path, {
        ".gitignore": "generated/\n*.gen.ts\n",
        "src/app.ts": "",
        "src/api.gen.ts": "",
        "generated/schema.ts": "",
    })

    assert [f.relative_path for f in discover_files(tmp_path)] == ["src/app.ts"]


def test_discover_returns_absolute_paths(tmp_path):
    write_project(tmp_path, {"a.ts": ""})
    (f,) = discover_files(tmp_path)
    assert f.path == str((tmp_path / "a.ts").resolve())


def test_is_analyzable():
    assert is_analyzable(SourceFile("/p/src/a.ts", "src/a.ts", ""))
    assert is_analyzable(SourceFile("/p/src/a", "src/a", "typescript"))
    assert not is_analyzable(SourceFile("/p/README.md", "README.md", ""))
    assert not is_analyzable(SourceFile("/p/dist/a.js", "dist/a.js", "javascript"))
    assert not is_analyzable(SourceFile("/p/a/.git/hooks/x.js", "a/.git/hooks/x.js", ""))


def test_is_analyzable_with_custom_excludes():
    f = SourceFile("/p/dist/a.js", "dist/a.js", "javascript")
    assert is_analyzable(f, exclude_dirs=[])
    assert not is_analyzable(f, exclude_dirs=["dist"])


def test_is_analyzable_falls_back_to_absolute_path():
    assert is_analyzable(SourceFile("/work/src/app.ts", "", ""))
    assert not is_analyzable(SourceFile("/work/node_modules/x/index.js", "", ""))
    assert not is_analyzable(SourceFile("/work/notes.md", "", ""))
