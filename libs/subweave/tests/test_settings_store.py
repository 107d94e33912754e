from __future__ import annotations

import json

from subweave.models.app_settings import AppSettings
from subweave.models.glossary import Glossary, GlossaryItem
from subweave.services import SettingsStore


def test_missing_file_gives_defaults_without_writing(tmp_path) -> None:
    path = tmp_path / "settings.json"

    settings = SettingsStore(path).load()

    assert settings.glossaries == []
    assert settings.alignment_mode == "none"
    assert not path.exists()


def test_save_and_load_round_trip(tmp_path) -> None:
    path = tmp_path / "nested" / "settings.json"
    store = SettingsStore(path)
    glossary = Glossary(id="g1", name="Anime", terms=[GlossaryItem("Foo", "福")], target_language="zh")

    store.save(
        AppSettings(
            glossaries=[glossary],
            active_glossary_id="g1",
            alignment_mode="ctc",
            aligner_path="/opt/aligner",
            extra={"theme": "dark"},
        )
    )
    loaded = store.load()

    assert loaded.glossaries == [glossary]
    assert loaded.active_glossary_id == "g1"
    assert loaded.alignment_config()["aligner_path"] == "/opt/aligner"
    assert json.loads(path.read_text(encoding="utf-8"))["theme"] == "dark"


def test_load_migrates_glossary_language_and_writes_back(tmp_path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"glossaries": [{"id": "g1", "name": "Anime", "terms": [{"term": "Foo", "translation": "福"}]}]}),
        encoding="utf-8",
    )

    loaded = SettingsStore(path).load()

    assert loaded.glossaries[0].target_language == "zh"
    assert json.loads(path.read_text(encoding="utf-8"))["glossaries"][0]["targetLanguage"] == "zh"


def test_load_does_not_rewrite_unchanged_file(tmp_path) -> None:
    path = tmp_path / "settings.json"
    raw = json.dumps({"glossaries": [], "custom": 1})
    path.write_text(raw, encoding="utf-8")

    SettingsStore(path).load()

    assert path.read_text(encoding="utf-8") == raw


def test_load_migrates_legacy_flat_glossary(tmp_path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"glossary": [{"term": "Foo", "translation": "福"}, {"term": "", "translation": "x"}]}),
        encoding="utf-8",
    )

    loaded = SettingsStore(path).load()

    assert [g.name for g in loaded.glossaries] == ["Default"]
    assert loaded.active_glossary_id == loaded.glossaries[0].id
    assert [t.term for t in loaded.glossaries[0].terms] == ["Foo"]
    assert "glossary" not in json.loads(path.read_text(encoding="utf-8"))


def test_unreadable_file_falls_back_to_defaults(tmp_path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{broken", encoding="utf-8")

    assert SettingsStore(path).load().glossaries == []
