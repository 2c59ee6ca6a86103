"""Qualis: Tests for the register_builtin_profiles script."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List

import pytest

from qualis.qualityprofile import ActiveRuleIndexer, QueueActiveRuleIndexer, RegistrationResult
from qualis.scripts import register_builtin_profiles as script


REPO_ROOT = Path(__file__).resolve().parents[2]
XOO_DEFINITIONS = REPO_ROOT / "configs" / "qualityprofiles" / "xoo_builtin.yaml"


class TestDryRun:
    def test_lists_declared_profiles(self, capsys: pytest.CaptureFixture[str]) -> None:
        script.main(["--definitions", str(XOO_DEFINITIONS), "--dry-run"])

        lines = capsys.readouterr().out.strip().splitlines()
        assert lines == [
            "language,name,default,active_rules",
            "xoo,Sonar way,true,3",
            "xoo,Strict,false,2",
        ]

    def test_missing_file_is_a_usage_error(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as excinfo:
            script.main(["--definitions", str(tmp_path / "missing.yaml"), "--dry-run"])

        assert excinfo.value.code == 2

    def test_duplicate_declarations_across_files(self, tmp_path: Path) -> None:
        copy = tmp_path / "copy.yaml"
        copy.write_text(XOO_DEFINITIONS.read_text())

        with pytest.raises(SystemExit):
            script.main(["--definitions", str(XOO_DEFINITIONS), str(copy), "--dry-run"])


class _StubRegistrar:
    calls: List[Any] = []

    def __init__(self, db_manager, installer, storage) -> None:  # type: ignore[no-untyped-def]
        self.installer = installer
        _StubRegistrar.calls.append(self)

    def register(self, profiles):  # type: ignore[no-untyped-def]
        self.profiles = list(profiles)
        return RegistrationResult()


class _StubDatabaseManager:
    instances: List["_StubDatabaseManager"] = []

    def __init__(self, config) -> None:  # type: ignore[no-untyped-def]
        self.closed = False
        _StubDatabaseManager.instances.append(self)

    def close_all(self) -> None:
        self.closed = True


class TestRegister:
    @pytest.fixture(autouse=True)
    def _stubs(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _StubRegistrar.calls = []
        _StubDatabaseManager.instances = []
        monkeypatch.setattr(script, "BuiltInProfileRegistrar", _StubRegistrar)
        monkeypatch.setattr(script, "DatabaseManager", _StubDatabaseManager)

    def test_registers_all_profiles_and_closes_pool(self) -> None:
        script.main(["--definitions", str(XOO_DEFINITIONS)])

        registrar = _StubRegistrar.calls[0]
        assert [p.name for p in registrar.profiles] == ["Sonar way", "Strict"]
        assert _StubDatabaseManager.instances[0].closed is True

    def test_indexer_follows_configuration(self, monkeypatch: pytest.MonkeyPatch) -> None:
        config = script.get_config().model_copy(update={"indexer_enabled": False})
        monkeypatch.setattr(script, "get_config", lambda: config)

        script.main(["--definitions", str(XOO_DEFINITIONS)])

        indexer = _StubRegistrar.calls[0].installer.indexer
        assert type(indexer) is ActiveRuleIndexer
        assert not isinstance(indexer, QueueActiveRuleIndexer)
