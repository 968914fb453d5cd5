"""Tests for whisker.registry — reflex registration and discovery."""

from __future__ import annotations

from pathlib import Path

import pytest

from whisker._errors import ConfigError
from whisker.reflex import Reflex
from whisker.registry import ReflexRegistry, discover_reflexes, register


class _Sample(Reflex):
    def go(self) -> None:
        pass


class _Other(Reflex):
    pass


class TestReflexRegistry:
    """Populate-once / read-many registry."""

    def test_register_by_class_name(self) -> None:
        reg = ReflexRegistry()
        reg.register(_Sample)
        assert reg.lookup("_Sample") is _Sample
        assert "_Sample" in reg
        assert len(reg) == 1

    def test_register_with_name_and_namespace(self) -> None:
        reg = ReflexRegistry()
        reg.register(_Sample, name="SampleReflex", namespace="admin")
        assert reg.lookup("admin.SampleReflex") is _Sample

    def test_lookup_missing_returns_none(self) -> None:
        assert ReflexRegistry().lookup("MissingReflex") is None

    def test_reregistering_same_class_is_noop(self) -> None:
        reg = ReflexRegistry()
        reg.register(_Sample)
        reg.register(_Sample)
        assert len(reg) == 1

    def test_duplicate_name_rejected(self) -> None:
        reg = ReflexRegistry()
        reg.register(_Sample, name="X")
        with pytest.raises(ConfigError, match="Duplicate reflex name"):
            reg.register(_Other, name="X")

    def test_frozen_rejects_registration(self) -> None:
        reg = ReflexRegistry()
        reg.freeze()
        assert reg.frozen is True
        with pytest.raises(ConfigError, match="frozen"):
            reg.register(_Sample)

    def test_snapshot_is_read_only(self) -> None:
        reg = ReflexRegistry()
        reg.register(_Sample)
        snap = reg.snapshot()
        assert dict(snap) == {"_Sample": _Sample}
        with pytest.raises(TypeError):
            snap["x"] = _Other  # type: ignore[index]


class TestRegisterDecorator:
    """@register on the default registry."""

    def test_bare_and_with_options(self, monkeypatch: pytest.MonkeyPatch) -> None:
        import whisker.registry as registry_module

        fresh = ReflexRegistry()
        monkeypatch.setattr(registry_module, "default_registry", fresh)

        @register
        class PingReflex(Reflex):
            pass

        @register(name="PongReflex", namespace="games")
        class Pong(Reflex):
            pass

        assert fresh.lookup("PingReflex") is PingReflex
        assert fresh.lookup("games.PongReflex") is Pong


class TestDiscoverReflexes:
    """discover_reflexes — scan a reflexes/ directory."""

    def test_discovers_modules_and_namespaces(self, app_root: Path) -> None:
        reg = ReflexRegistry()
        count = discover_reflexes(app_root / "reflexes", reg)
        assert count == 2
        assert reg.lookup("CounterReflex") is not None
        assert reg.lookup("admin.UsersReflex") is not None

    def test_skips_underscore_files(self, app_root: Path) -> None:
        reg = ReflexRegistry()
        discover_reflexes(app_root / "reflexes", reg)
        assert reg.lookup("Hidden") is None

    def test_imported_classes_not_registered(self, app_root: Path) -> None:
        reg = ReflexRegistry()
        discover_reflexes(app_root / "reflexes", reg)
        assert reg.lookup("Reflex") is None

    def test_missing_directory(self, tmp_path: Path) -> None:
        assert discover_reflexes(tmp_path / "nope", ReflexRegistry()) == 0

    def test_import_error_raises_config_error(self, tmp_path: Path) -> None:
        reflexes = tmp_path / "reflexes"
        reflexes.mkdir()
        (reflexes / "broken.py").write_text("raise RuntimeError('nope')\n")
        with pytest.raises(ConfigError, match="broken.py"):
            discover_reflexes(reflexes, ReflexRegistry())
