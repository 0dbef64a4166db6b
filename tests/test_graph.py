import pytest

from buildorch.errors import (
    DependencyCycleError,
    GraphError,
    UnknownTaskError,
    UnresolvedDependencyError,
)
from buildorch.graph import BuildSystem, TaskGraph, TaskSpec, component, load_graph, meta, topo_sort
from buildorch.sources import git


def src(name, deps=()):
    return component(name, path=name, provider=git(f"https://example.org/{name}.git"), deps=deps)


def test_graph_keeps_declaration_order(abc_graph):
    assert abc_graph.names() == ["A", "B", "C"]
    assert abc_graph.dependencies_of("B") == ("A",)
    assert abc_graph["C"].is_meta
    assert not abc_graph["A"].is_meta


def test_topo_sort_puts_dependencies_first():
    specs = [meta("all", deps=["b", "a"]), src("b", deps=["a"]), src("a")]
    assert topo_sort({s.name: s for s in specs}) == ["a", "b", "all"]


def test_closure_visits_each_dependency_once():
    graph = TaskGraph(
        [src("base"), src("left", ["base"]), src("right", ["base"]), meta("top", ["left", "right"])]
    )
    assert graph.closure("top") == ["base", "left", "right", "top"]
    assert graph.closure("base") == ["base"]


def test_unknown_task_lookup():
    graph = TaskGraph([src("a")])
    assert "b" not in graph
    with pytest.raises(UnknownTaskError) as exc:
        graph["b"]
    assert isinstance(exc.value, KeyError)
    assert str(exc.value) == "Unknown task: b"


def test_unresolved_dependency_is_rejected():
    with pytest.raises(UnresolvedDependencyError) as exc:
        TaskGraph([src("a", deps=["ghost"])])
    assert exc.value.task == "a"
    assert exc.value.dependency == "ghost"


def test_duplicate_names_are_rejected():
    with pytest.raises(GraphError, match="declared twice"):
        TaskGraph([src("a"), meta("a", deps=[])])


def test_cycle_is_rejected_with_path():
    with pytest.raises(DependencyCycleError) as exc:
        TaskGraph([src("a", ["c"]), src("b", ["a"]), src("c", ["b"])])
    assert exc.value.cycle == ["a", "c", "b", "a"]


def test_self_dependency_is_a_cycle():
    with pytest.raises(DependencyCycleError):
        TaskGraph([meta("a", deps=["a"])])


def test_source_path_requires_provider():
    with pytest.raises(GraphError):
        TaskSpec(name="half", source_path="half")


def test_component_accepts_build_system_name():
    spec = component("m", path="m", provider=git("x"), build_system="meson")
    assert spec.build_system is BuildSystem.MESON


def test_default_declarations_form_valid_graph():
    graph = load_graph()
    assert "all" in graph
    assert graph["all"].is_meta
    closure = graph.closure("all")
    assert closure.index("libdrm") < closure.index("mesa") < closure.index("piglit")
    assert closure.index("spirv-headers") < closure.index("glslang")


def test_missing_declarations_package():
    with pytest.raises(GraphError, match="not found"):
        load_graph("no_such_declarations_pkg")


def _declarations(tmp_path, monkeypatch, pkg, files):
    root = tmp_path / pkg
    root.mkdir()
    for name, body in files.items():
        (root / name).write_text(body)
    monkeypatch.syspath_prepend(str(tmp_path))
    return pkg


def test_broken_declarations_module_names_the_module(tmp_path, monkeypatch):
    pkg = _declarations(
        tmp_path,
        monkeypatch,
        "decl_broken_sub",
        {
            "__init__.py": "",
            "good.py": "from buildorch.graph import meta\nx = meta('x', deps=[])\n",
            "bad.py": "import not_a_real_dependency_xyz\n",
        },
    )
    with pytest.raises(GraphError) as exc:
        load_graph(pkg)
    assert "decl_broken_sub.bad" in str(exc.value)
    assert "not found" not in str(exc.value)


def test_missing_import_inside_package_is_not_reported_as_missing_package(
    tmp_path, monkeypatch
):
    pkg = _declarations(
        tmp_path,
        monkeypatch,
        "decl_broken_init",
        {"__init__.py": "import not_a_real_dependency_xyz\n"},
    )
    with pytest.raises(GraphError, match="Failed to import declarations module decl_broken_init"):
        load_graph(pkg)


def test_declarations_from_custom_package(tmp_path, monkeypatch):
    pkg = _declarations(
        tmp_path,
        monkeypatch,
        "decl_custom_ok",
        {
            "__init__.py": "from buildorch.graph import meta\nall_ = meta('all', deps=['lib'])\n",
            "lib.py": (
                "from buildorch.graph import component\n"
                "from buildorch.sources import git\n"
                "lib = component('lib', path='lib', provider=git('https://example.org/lib.git'))\n"
            ),
        },
    )
    graph = load_graph(pkg)
    assert graph.names() == ["all", "lib"]
