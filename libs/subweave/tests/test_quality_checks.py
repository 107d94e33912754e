from __future__ import annotations

import pytest

from subweave.models.glossary import GlossaryItem
from subweave.models.subtitle import SubtitleItem
from subweave.quality import ConsistencyValidator, TerminologyChecker
from subweave.quality.consistency import IssueSeverity, IssueType


def _sub(translated: str, original: str = "src", sid: str = "s1") -> SubtitleItem:
    return SubtitleItem(id=sid, start=0.0, end=1.0, original=original, translated=translated)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("你好,世界", IssueType.PUNCTUATION),
        ("hello世界", IssueType.SPACING),
        ("a" * 36, IssueType.LENGTH),
        ("（测试", IssueType.BRACKETS),
    ],
)
def test_consistency_single_issue(text: str, expected: IssueType) -> None:
    issues = ConsistencyValidator.validate([_sub(text)])

    assert [i.type for i in issues] == [expected]
    assert issues[0].segment_id == "s1"


def test_consistency_ignores_digits_ellipses_and_untranslated() -> None:
    subs = [
        _sub("价格是 3.5 元", sid="a"),
        _sub("数量 1,000 个", sid="b"),
        _sub("我想想...", sid="c"),
        _sub("", sid="d"),
        _sub("plain english, nothing else.", sid="e"),
    ]

    assert ConsistencyValidator.validate(subs) == []


def test_consistency_checks_accumulate_with_fixed_severity() -> None:
    issues = ConsistencyValidator.validate([_sub("这是test,并且（" + "长" * 40)])

    kinds = [i.type for i in issues]
    assert kinds.count(IssueType.PUNCTUATION) == 1
    assert IssueType.SPACING in kinds
    assert IssueType.LENGTH in kinds
    assert IssueType.BRACKETS in kinds
    by_type = {i.type: i.severity for i in issues}
    assert by_type[IssueType.LENGTH] == IssueSeverity.MEDIUM
    assert by_type[IssueType.SPACING] == IssueSeverity.LOW


def test_terminology_flags_missing_translation() -> None:
    checker = TerminologyChecker([GlossaryItem(term="Foo", translation="福")])

    issues = checker.check([_sub("巴", original="Foo bar")])

    assert len(issues) == 1
    assert issues[0].term == "Foo"
    assert [o.segment_id for o in issues[0].occurrences] == ["s1"]


def test_terminology_is_sparse_and_case_insensitive() -> None:
    checker = TerminologyChecker([GlossaryItem(term="Foo", translation="福")])

    assert checker.check([_sub("anything", original="no match")]) == []
    assert checker.check([_sub("福来了", original="FOO arrives")]) == []
    assert len(checker.check([_sub("来了", original="foo arrives")])) == 1


def test_terminology_term_is_matched_literally() -> None:
    checker = TerminologyChecker([GlossaryItem(term="C++", translation="C++")])

    assert checker.check([_sub("一种语言", original="I like C")]) == []
    assert len(checker.check([_sub("一种语言", original="I like C++")])) == 1


def test_terminology_checker_glossary_edits() -> None:
    checker = TerminologyChecker()
    checker.add_term("Foo", "福")
    checker.add_term("foo", "富")
    checker.add_term("Bar", "巴")

    assert [(g.term, g.translation) for g in checker.get_glossary()] == [("foo", "富"), ("Bar", "巴")]

    checker.remove_term("BAR")
    assert [g.term for g in checker.get_glossary()] == ["foo"]

    checker.set_glossary([])
    assert checker.get_glossary() == []
