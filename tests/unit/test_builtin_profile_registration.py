"""Qualis: Tests for BuiltInProfileRegistrar.

The registrar is exercised with a stub DatabaseManager handing out
recording sessions, a stub storage and a stub installer.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Dict, List, Optional, Tuple

import pytest

from qualis.core.database import StoreError
from qualis.qualityprofile import (
    BuiltInProfile,
    BuiltInProfileInstaller,
    BuiltInProfileRegistrar,
    QualityProfile,
    QualityProfileStorage,
)
from qualis.rules import RuleKey, RuleNotFoundError


class _RecordingSession:
    def __init__(self, name: str, log: List[str], fail_on_commit: bool = False) -> None:
        self.name = name
        self.log = log
        self.fail_on_commit = fail_on_commit

    def commit(self) -> None:
        if self.fail_on_commit:
            raise StoreError(f"commit of {self.name} failed")
        self.log.append(f"commit:{self.name}")

    def rollback(self) -> None:
        self.log.append(f"rollback:{self.name}")


class _StubDatabaseManager:
    """Hands out sessions and rolls them back like DatabaseManager does."""

    def __init__(self, fail_batch_commit: bool = False) -> None:
        self.log: List[str] = []
        self.opened = 0
        self.fail_batch_commit = fail_batch_commit

    @contextmanager
    def open_session(self, batch: bool = False):  # type: ignore[no-untyped-def]
        self.opened += 1
        session = _RecordingSession(
            "batch" if batch else "session",
            self.log,
            fail_on_commit=batch and self.fail_batch_commit,
        )
        try:
            yield session
        except Exception:
            session.rollback()
            raise


class _StubStorage(QualityProfileStorage):
    def __init__(self, existing: Optional[Dict[Tuple[str, str], QualityProfile]] = None) -> None:
        self.existing = existing or {}

    def select_by_name_and_language(self, session, name, language):  # type: ignore[override, no-untyped-def]
        return self.existing.get((language, name))


class _StubInstaller(BuiltInProfileInstaller):
    def __init__(self, fail_on: Optional[str] = None) -> None:
        self.fail_on = fail_on
        self.installed: List[str] = []

    def install(self, session, batch_session, builtin):  # type: ignore[override, no-untyped-def]
        assert session.name == "session"
        assert batch_session.name == "batch"
        if builtin.name == self.fail_on:
            raise RuleNotFoundError(RuleKey("xoo", "missing"))
        self.installed.append(builtin.name)
        return _profile(builtin.name, kee=f"kee-{builtin.name}")


def _profile(name: str, kee: str) -> QualityProfile:
    return QualityProfile(
        kee=kee,
        rules_profile_uuid=f"rp-{kee}",
        name=name,
        language="xoo",
        parent_kee=None,
        is_built_in=True,
        is_default=False,
        rules_updated_at=1,
    )


def _builtin(name: str) -> BuiltInProfile:
    return BuiltInProfile(name=name, language="xoo")


class TestBuiltInProfileRegistrar:
    def test_installs_and_commits_each_profile(self) -> None:
        db = _StubDatabaseManager()
        installer = _StubInstaller()
        registrar = BuiltInProfileRegistrar(db_manager=db, installer=installer, storage=_StubStorage())  # type: ignore[arg-type]

        result = registrar.register([_builtin("A"), _builtin("B")])

        assert installer.installed == ["A", "B"]
        assert [p.kee for p in result.installed] == ["kee-A", "kee-B"]
        assert result.skipped == []
        assert db.log == ["commit:session", "commit:batch", "commit:session", "commit:batch"]

    def test_existing_profiles_are_skipped(self) -> None:
        db = _StubDatabaseManager()
        installer = _StubInstaller()
        storage = _StubStorage({("xoo", "A"): _profile("A", kee="existing")})
        registrar = BuiltInProfileRegistrar(db_manager=db, installer=installer, storage=storage)  # type: ignore[arg-type]

        result = registrar.register([_builtin("A"), _builtin("B")])

        assert installer.installed == ["B"]
        assert [p.name for p in result.skipped] == ["A"]
        assert [p.name for p in result.installed] == ["B"]

    def test_failure_rolls_back_and_keeps_earlier_profiles(self) -> None:
        db = _StubDatabaseManager()
        installer = _StubInstaller(fail_on="B")
        registrar = BuiltInProfileRegistrar(db_manager=db, installer=installer, storage=_StubStorage())  # type: ignore[arg-type]

        with pytest.raises(RuleNotFoundError):
            registrar.register([_builtin("A"), _builtin("B"), _builtin("C")])

        assert installer.installed == ["A"]
        assert db.log == ["commit:session", "commit:batch", "rollback:batch", "rollback:session"]

    def test_failed_batch_commit_names_the_committed_profile(self, caplog) -> None:  # type: ignore[no-untyped-def]
        caplog.set_level(logging.ERROR, logger="qualis.qualityprofile.registration")
        db = _StubDatabaseManager(fail_batch_commit=True)
        installer = _StubInstaller()
        registrar = BuiltInProfileRegistrar(db_manager=db, installer=installer, storage=_StubStorage())  # type: ignore[arg-type]

        with pytest.raises(StoreError):
            registrar.register([_builtin("A"), _builtin("B")])

        assert installer.installed == ["A"]
        assert db.log == ["commit:session", "rollback:batch", "rollback:session"]
        messages = [record.getMessage() for record in caplog.records if record.levelno == logging.ERROR]
        assert any("kee-A" in message and "without its active rules" in message for message in messages)
