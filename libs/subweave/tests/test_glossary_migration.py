from __future__ import annotations

from subweave.glossary import (
    get_active_glossary,
    get_active_glossary_terms,
    merge_glossary_results,
    migrate_all_glossaries,
    migrate_from_legacy_glossary,
    migrate_glossary_language,
)
from subweave.models.app_settings import AppSettings
from subweave.models.glossary import Glossary, GlossaryExtractionResult, GlossaryItem


def _glossary(gid: str, *terms: GlossaryItem, target_language: str | None = None) -> Glossary:
    return Glossary(id=gid, name=gid, terms=list(terms), target_language=target_language)


def test_migrate_language_is_noop_when_set() -> None:
    g = _glossary("a", GlossaryItem("Foo", "福"), target_language="ja")

    assert migrate_glossary_language(g) is g


def test_migrate_language_uses_detector_then_fallback() -> None:
    calls: list[str] = []

    def _detector(text: str) -> str:
        calls.append(text)
        return "ko"

    with_terms = migrate_glossary_language(_glossary("a", GlossaryItem("Foo", "푸")), detector=_detector)
    assert with_terms.target_language == "ko"
    assert calls == ["푸"]

    assert migrate_glossary_language(_glossary("b"), "fr").target_language == "fr"
    assert migrate_glossary_language(_glossary("c")).target_language == "en"


def test_migrate_all_reports_changes_and_is_idempotent() -> None:
    glossaries = [_glossary("a", target_language="zh"), _glossary("b", GlossaryItem("Foo", "福"))]

    migrated, changed = migrate_all_glossaries(glossaries)
    assert changed
    assert [g.target_language for g in migrated] == ["zh", "zh"]

    again, changed_again = migrate_all_glossaries(migrated)
    assert not changed_again
    assert again == migrated


def test_migrate_from_legacy_glossary() -> None:
    g = migrate_from_legacy_glossary([GlossaryItem("Foo", "福"), GlossaryItem("", "x")])

    assert g.name == "Default"
    assert [t.term for t in g.terms] == ["Foo"]
    assert g.id


def test_merge_glossary_results() -> None:
    results = [
        GlossaryExtractionResult(terms=[GlossaryItem("Foo", "福"), GlossaryItem("Bar", "巴")]),
        GlossaryExtractionResult(terms=[GlossaryItem("foo", "福"), GlossaryItem("Baz", "巴兹")]),
    ]
    existing = [GlossaryItem("BAZ", "宝")]

    merged = merge_glossary_results(results, existing)

    assert [t.term for t in merged.unique] == ["Foo", "Bar"]
    assert list(merged.duplicates) == ["foo"]
    assert len(merged.conflicts) == 1
    conflict = merged.conflicts[0]
    assert conflict.term == "BAZ"
    assert conflict.has_existing
    assert [o.translation for o in conflict.options] == ["宝", "巴兹"]


def test_active_glossary_selection() -> None:
    a = _glossary("a", GlossaryItem("Foo", "福"))
    b = _glossary("b", GlossaryItem("Bar", "巴"))
    settings = AppSettings(glossaries=[a, b], active_glossary_id="b")

    assert get_active_glossary(settings) is b
    assert [t.term for t in get_active_glossary_terms(settings)] == ["Bar"]

    settings.glossary_override = [GlossaryItem("Qux", "酷")]
    assert [t.term for t in get_active_glossary_terms(settings)] == ["Qux"]

    assert get_active_glossary(AppSettings(glossaries=[a], active_glossary_id="missing")) is None
    assert get_active_glossary_terms(AppSettings()) == []
