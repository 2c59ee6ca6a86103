"""Qualis: Tests for built-in profile declarations and YAML loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from qualis.qualityprofile import BuiltInProfilesContext, DefinitionError, load_definitions
from qualis.rules import RuleKey, Severity


REPO_ROOT = Path(__file__).resolve().parents[2]


class TestDeclarationApi:
    def test_declare_profile_with_rules(self) -> None:
        context = BuiltInProfilesContext()
        new_profile = context.create_profile("Sonar way", "xoo").set_default(True)
        new_profile.activate_rule("xoo", "x1").override_severity("critical")
        new_profile.activate_rule("xoo", "x2").override_param("max", 10).override_param("strict", True)
        profile = new_profile.done()

        assert profile.name == "Sonar way"
        assert profile.language == "xoo"
        assert profile.is_default is True
        assert [ar.rule_key for ar in profile.active_rules] == [RuleKey("xoo", "x1"), RuleKey("xoo", "x2")]
        assert profile.active_rules[0].severity == Severity.CRITICAL
        assert profile.active_rules[1].severity is None
        assert profile.active_rules[1].params == {"max": "10", "strict": "true"}
        assert context.profile("xoo", "Sonar way") is profile
        assert context.profiles == [profile]

    def test_profiles_are_not_default_unless_declared(self) -> None:
        context = BuiltInProfilesContext()

        profile = context.create_profile("Other", "xoo").done()

        assert profile.is_default is False
        assert profile.active_rules == ()

    def test_rule_cannot_be_activated_twice(self) -> None:
        new_profile = BuiltInProfilesContext().create_profile("Sonar way", "xoo")
        new_profile.activate_rule("xoo", "x1")

        with pytest.raises(DefinitionError, match="already activated"):
            new_profile.activate_rule("xoo", "x1")

    def test_profile_cannot_be_declared_twice(self) -> None:
        context = BuiltInProfilesContext()
        context.create_profile("Sonar way", "xoo").done()

        with pytest.raises(DefinitionError, match="already declared"):
            context.create_profile("Sonar way", "xoo").done()

    def test_same_name_in_other_language_is_allowed(self) -> None:
        context = BuiltInProfilesContext()
        context.create_profile("Sonar way", "xoo").done()
        context.create_profile("Sonar way", "java").done()

        assert len(context.profiles) == 2

    @pytest.mark.parametrize("name,language", [("", "xoo"), ("  ", "xoo"), ("Sonar way", "")])
    def test_name_and_language_are_required(self, name: str, language: str) -> None:
        with pytest.raises(DefinitionError):
            BuiltInProfilesContext().create_profile(name, language)

    def test_unknown_severity_is_rejected(self) -> None:
        active_rule = BuiltInProfilesContext().create_profile("p", "xoo").activate_rule("xoo", "x1")

        with pytest.raises(DefinitionError, match="xoo:x1"):
            active_rule.override_severity("URGENT")


class TestLoadDefinitions:
    def test_load_shipped_definitions(self) -> None:
        profiles = load_definitions(REPO_ROOT / "configs" / "qualityprofiles" / "xoo_builtin.yaml")

        by_name = {p.name: p for p in profiles}
        assert set(by_name) == {"Sonar way", "Strict"}
        assert by_name["Sonar way"].is_default is True
        assert by_name["Strict"].is_default is False
        assert len(by_name["Sonar way"].active_rules) == 3
        has_tag = by_name["Sonar way"].active_rules[2]
        assert has_tag.rule_key == RuleKey("xoo", "HasTag")
        assert has_tag.params == {"tag": "TODO"}

    def test_files_share_a_context(self, tmp_path: Path) -> None:
        first = tmp_path / "first.yaml"
        first.write_text("profiles:\n  - name: A\n    language: xoo\n")
        second = tmp_path / "second.yaml"
        second.write_text("profiles:\n  - name: A\n    language: xoo\n")
        context = BuiltInProfilesContext()

        assert len(load_definitions(first, context=context)) == 1
        with pytest.raises(DefinitionError):
            load_definitions(second, context=context)

    def test_returns_only_profiles_of_this_file(self, tmp_path: Path) -> None:
        first = tmp_path / "first.yaml"
        first.write_text("profiles:\n  - name: A\n    language: xoo\n")
        second = tmp_path / "second.yaml"
        second.write_text("profiles:\n  - name: B\n    language: xoo\n")
        context = BuiltInProfilesContext()

        load_definitions(first, context=context)
        declared = load_definitions(second, context=context)

        assert [p.name for p in declared] == ["B"]
        assert len(context.profiles) == 2

    @pytest.mark.parametrize(
        "content",
        [
            "profiles: [unclosed",
            "something_else: []\n",
            "profiles:\n  - just a string\n",
            "profiles:\n  - name: A\n    language: xoo\n    rules:\n      - severity: MAJOR\n",
            "profiles:\n  - name: A\n    language: xoo\n    rules:\n      - key: no-colon\n",
            "profiles:\n  - name: A\n    language: xoo\n    default: \"false\"\n",
            "profiles:\n  - name: A\n    language: xoo\n    default: 1\n",
            "profiles:\n  - name: A\n    language: xoo\n    rules:\n      - key: \"xoo:x1\"\n        params:\n          - max\n",
        ],
    )
    def test_malformed_files_are_rejected(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text(content)

        with pytest.raises(DefinitionError):
            load_definitions(path)
