# tests/test_answer_resolver.py

from core.answer_resolver import (
    AnswerEncoding,
    classify_answer,
    find_defective,
    find_option_index,
    normalize_key,
    resolve_correct_content,
    strip_option_prefix,
    validate_record,
)
from core.schema import QuestionKind, QuestionRecord


def test_classify_encodings():
    assert classify_answer("B").encoding == AnswerEncoding.LETTER
    assert classify_answer(" c. ").letter == "C"
    assert classify_answer("D)").index == 3

    spec = classify_answer("B. Hà Nội")
    assert spec.encoding == AnswerEncoding.PREFIXED
    assert spec.text == "Hà Nội"

    assert classify_answer("Hà Nội").encoding == AnswerEncoding.CONTENT
    assert classify_answer("   ").encoding == AnswerEncoding.EMPTY


def test_resolve_by_position_only_for_bare_letter():
    options = ["Huế", "Hà Nội", "Đà Nẵng"]

    assert resolve_correct_content("B", options) == "Hà Nội"
    assert resolve_correct_content("C. Đà Nẵng", options) == "Đà Nẵng"
    # chữ cái kèm nội dung: dùng nội dung, không tra vị trí
    assert resolve_correct_content("A. Đà Nẵng", options) == "Đà Nẵng"
    assert resolve_correct_content("Huế", options) == "Huế"
    assert resolve_correct_content("D", options) == ""


def test_prefix_and_key_helpers():
    assert strip_option_prefix("A. 12 cm") == "12 cm"
    assert strip_option_prefix("B)x") == "x"
    assert strip_option_prefix("Alpha") == "Alpha"
    assert normalize_key("  Hà  Nội \n") == "hànội"
    assert find_option_index("ha noi", ["Huế", "HA NOI"]) == 1
    assert find_option_index("", ["", "x"]) == -1


def test_validate_record_issues():
    ok = QuestionRecord(id="1", content="?", options=["A. 1", "B. 2"], correct_answer="B")
    assert validate_record(ok) == []

    assert validate_record(QuestionRecord(id="2", content="?")) == ["no_options"]
    assert validate_record(QuestionRecord(id="3", content="?", options=["A. 1"])) == ["missing_answer"]
    assert validate_record(
        QuestionRecord(id="4", content="?", options=["A. 1", "B. 2"], correct_answer="3")
    ) == ["unresolved_answer"]
    assert validate_record(
        QuestionRecord(id="5", content="?", options=["A. 1", "B. 1"], correct_answer="1")
    ) == ["ambiguous_answer"]
    assert validate_record(
        QuestionRecord(id="6", content="?", kind=QuestionKind.ESSAY, options=["A. x"])
    ) == ["essay_with_options"]


def test_find_defective():
    pool = [
        QuestionRecord(id="good", content="?", options=["A. 1", "B. 2"], correct_answer="1"),
        QuestionRecord(id="bad", content="?", options=["A. 1", "B. 2"], correct_answer="9"),
        QuestionRecord(id="essay", content="?", kind=QuestionKind.ESSAY),
    ]
    assert [q.id for q in find_defective(pool)] == ["bad"]
