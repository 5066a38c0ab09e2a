"""
Tests for the module build tool.

This test suite covers:
1. Unit declaration and dependency queries
2. Load order and deduplication
3. Cycles, unknown units and external modules
4. Module caching and re-declaration
5. Registration entry points
"""

import tempfile
import textwrap
from pathlib import Path

import pytest

from hearth.plugin.build_tool import BuildError, DependencyError, ModuleBuildTool
from hearth.plugin.errors import PluginError


def write_unit(directory: Path, name: str, body: str = "") -> Path:
    """Write a unit module that records its registration in the registry list."""
    path = directory / f"{name}.py"
    path.write_text(
        textwrap.dedent(body)
        + textwrap.dedent(
            f"""

            def register(registry):
                registry.append({name!r})
            """
        )
    )
    return path


class TestDeclaration:
    """Test declare_unit() and declared_dependencies()."""

    def test_declared_dependencies_are_direct(self):
        """Should return only the direct dependencies."""
        tool = ModuleBuildTool()
        tool.declare_unit("a", Path("a.py"), ["b"])
        tool.declare_unit("b", Path("b.py"), ["c"])

        assert tool.declared_dependencies("a") == frozenset({"b"})
        assert tool.declared_units() == ["a", "b"]

    def test_unknown_unit_dependencies(self):
        """Should reject dependency queries for undeclared units."""
        tool = ModuleBuildTool()

        with pytest.raises(BuildError, match="Unknown build unit"):
            tool.declared_dependencies("missing")


class TestActivation:
    """Test activate()."""

    def test_dependencies_load_first(self):
        """Should load each unit after everything it depends on."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            events = []
            tool = ModuleBuildTool(events)

            tool.declare_unit("app", write_unit(root, "app"), ["lib-b", "lib-a"])
            tool.declare_unit("lib-a", write_unit(root, "lib_a"), ["base"])
            tool.declare_unit("lib-b", write_unit(root, "lib_b"), ["base"])
            tool.declare_unit("base", write_unit(root, "base"))

            tool.activate(["app"])

            assert events == ["base", "lib_a", "lib_b", "app"]
            assert tool.loaded_units() == ["base", "lib-a", "lib-b", "app"]

    def test_batch_is_deduplicated(self):
        """Should load a shared dependency once for the whole batch."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            events = []
            tool = ModuleBuildTool(events)

            tool.declare_unit("x", write_unit(root, "x"), ["shared"])
            tool.declare_unit("y", write_unit(root, "y"), ["shared"])
            tool.declare_unit("shared", write_unit(root, "shared"))

            tool.activate(["y", "x"])

            assert events.count("shared") == 1
            assert events[0] == "shared"

    def test_loaded_units_are_not_reexecuted(self):
        """Should skip units that are already loaded."""
        with tempfile.TemporaryDirectory() as tmpdir:
            events = []
            tool = ModuleBuildTool(events)
            tool.declare_unit("x", write_unit(Path(tmpdir), "x"))

            tool.activate(["x"])
            tool.activate(["x"])

            assert events == ["x"]
            assert tool.is_loaded("x")

    def test_redeclaration_forgets_module(self):
        """Should execute a re-declared unit again."""
        with tempfile.TemporaryDirectory() as tmpdir:
            events = []
            tool = ModuleBuildTool(events)
            path = write_unit(Path(tmpdir), "x")

            tool.declare_unit("x", path)
            tool.activate(["x"])
            tool.declare_unit("x", path)
            assert not tool.is_loaded("x")
            tool.activate(["x"])

            assert events == ["x", "x"]

    def test_unknown_unit(self):
        """Should reject activation of undeclared units."""
        tool = ModuleBuildTool([])

        with pytest.raises(BuildError, match="Unknown build unit"):
            tool.activate(["missing"])

    def test_cycle_detected(self):
        """Should refuse to order a cyclic graph."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            tool = ModuleBuildTool([])
            tool.declare_unit("a", write_unit(root, "a"), ["b"])
            tool.declare_unit("b", write_unit(root, "b"), ["a"])

            with pytest.raises(DependencyError, match="Circular dependency"):
                tool.activate(["a"])

            assert tool.loaded_units() == []

    def test_external_module_dependency(self):
        """Should import undeclared dependencies as Python modules."""
        with tempfile.TemporaryDirectory() as tmpdir:
            events = []
            tool = ModuleBuildTool(events)
            tool.declare_unit("x", write_unit(Path(tmpdir), "x"), ["json"])

            tool.activate(["x"])

            assert events == ["x"]
            assert tool.is_loaded("json")
            assert tool.loaded_units() == ["x"]

    def test_missing_external_module(self):
        """Should fail when an undeclared dependency cannot be imported."""
        with tempfile.TemporaryDirectory() as tmpdir:
            tool = ModuleBuildTool([])
            tool.declare_unit(
                "x", write_unit(Path(tmpdir), "x"), ["hearth_no_such_module_xyz"]
            )

            with pytest.raises(BuildError, match="neither a declared unit"):
                tool.activate(["x"])

    def test_broken_unit_module(self):
        """Should wrap errors raised while executing a unit."""
        with tempfile.TemporaryDirectory() as tmpdir:
            tool = ModuleBuildTool([])
            tool.declare_unit("x", write_unit(Path(tmpdir), "x", "raise ValueError('nope')\n"))

            with pytest.raises(BuildError, match="nope"):
                tool.activate(["x"])

            assert not tool.is_loaded("x")

    def test_missing_source_file(self):
        """Should fail for units whose file disappeared."""
        tool = ModuleBuildTool([])
        tool.declare_unit("x", Path("/nonexistent/x.py"))

        with pytest.raises(BuildError, match="not found"):
            tool.activate(["x"])

    def test_unit_without_entry_point(self):
        """Should load modules that define no register() function."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "lib.py"
            path.write_text("VALUE = 1\n")
            tool = ModuleBuildTool([])
            tool.declare_unit("lib", path)

            tool.activate(["lib"])

            assert tool.is_loaded("lib")

    def test_entry_point_plugin_error_passes_through(self):
        """Should re-raise plugin errors from the entry point unchanged."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "x.py"
            path.write_text(
                textwrap.dedent(
                    """
                    from hearth.plugin.errors import PluginError

                    def register(registry):
                        raise PluginError("refused")
                    """
                )
            )
            tool = ModuleBuildTool([])
            tool.declare_unit("x", path)

            with pytest.raises(PluginError, match="refused") as excinfo:
                tool.activate(["x"])

            assert not isinstance(excinfo.value, BuildError)
            assert not tool.is_loaded("x")

    def test_sibling_imports(self):
        """Should let a unit import modules next to it."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "hearth_test_helpers_abc.py").write_text("ANSWER = 42\n")
            path = root / "x.py"
            path.write_text(
                textwrap.dedent(
                    """
                    import hearth_test_helpers_abc

                    def register(registry):
                        registry.append(hearth_test_helpers_abc.ANSWER)
                    """
                )
            )
            events = []
            tool = ModuleBuildTool(events)
            tool.declare_unit("x", path)

            tool.activate(["x"])

            assert events == [42]

    def test_sibling_modules_are_private_to_each_unit(self):
        """Should give each unit its own copy of an identically named sibling module."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            events = []
            tool = ModuleBuildTool(events)
            for name in ("alpha", "beta"):
                unit_dir = root / name
                unit_dir.mkdir()
                (unit_dir / "helpers.py").write_text(f"VALUE = 'from-{name}'\n")
                path = unit_dir / "plugin.py"
                path.write_text(
                    textwrap.dedent(
                        f"""
                        import helpers

                        def register(registry):
                            registry.append(({name!r}, helpers.VALUE))
                        """
                    )
                )
                tool.declare_unit(name, path)

            tool.activate(["alpha", "beta"])

            assert events == [("alpha", "from-alpha"), ("beta", "from-beta")]

    def test_redeclared_unit_reloads_siblings(self):
        """Should pick up an edited sibling module when the unit is re-declared."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            helpers = root / "helpers.py"
            helpers.write_text("VALUE = 1\n")
            path = root / "x.py"
            path.write_text(
                textwrap.dedent(
                    """
                    import helpers

                    def register(registry):
                        registry.append(helpers.VALUE)
                    """
                )
            )
            events = []
            tool = ModuleBuildTool(events)
            tool.declare_unit("x", path)
            tool.activate(["x"])

            helpers.write_text("VALUE = 'second'\n")
            tool.declare_unit("x", path)
            tool.activate(["x"])

            assert events == [1, "second"]

    def test_reset(self):
        """Should forget declarations and loaded modules."""
        with tempfile.TemporaryDirectory() as tmpdir:
            tool = ModuleBuildTool([])
            tool.declare_unit("x", write_unit(Path(tmpdir), "x"))
            tool.activate(["x"])

            tool.reset()

            assert tool.declared_units() == []
            assert not tool.is_loaded("x")
