# tests/test_exam_engine.py

import random
from collections import Counter

import pytest

from core.answer_resolver import LETTERS, normalize_key, strip_option_prefix
from core.errors import ContractViolationError
from core.exam_engine import (
    generate,
    generate_versions,
    random_exam_code,
    shuffle_list,
    shuffle_question,
    unique_exam_codes,
)
from core.schema import (
    ESSAY_GUIDANCE,
    ESSAY_LETTER,
    NO_MC_EXPLANATION,
    UNRESOLVED_LETTER,
    AnswerStatus,
    QuestionKind,
    QuestionRecord,
)


def _pool():
    return [
        # chữ cái đơn
        QuestionRecord(id="q1", content="10 x 3 = ?", options=["A. 10", "B. 20", "C. 30", "D. 40"],
                       correct_answer="C", explanation="Nhân."),
        # chữ cái kèm nội dung, phương án không có tiền tố
        QuestionRecord(id="q2", content="Thủ đô?", options=["Huế", "Hà Nội", "Đà Nẵng", "Cần Thơ"],
                       correct_answer="B. Hà Nội"),
        # nội dung thô
        QuestionRecord(id="q3", content="Nghiệm?", options=["A. x = 1", "B. x = 2", "C. x = 3"],
                       correct_answer="x = 2"),
        # chữ cái thường có dấu
        QuestionRecord(id="q4", content="Số chẵn?", options=["A. 1", "B. 2", "C. 3", "D. 5"],
                       correct_answer="b)"),
        QuestionRecord(id="q5", content="Trình bày định luật Ôm.", kind=QuestionKind.ESSAY,
                       correct_answer="U = I.R"),
    ]


def _assert_key_matches(paper):
    for pos, q in enumerate(paper.ordered_questions, 1):
        entry = paper.answer_key[pos]
        if entry.status == AnswerStatus.ESSAY:
            continue
        assert entry.status == AnswerStatus.RESOLVED
        shown = strip_option_prefix(q.options[LETTERS.index(entry.correct_letter)])
        assert normalize_key(shown) == normalize_key(entry.content), f"Lệch đáp án ở câu {pos}"


def test_shuffle_list_is_permutation_and_copy():
    items = list(range(20))
    out = shuffle_list(items, random.Random(1))

    assert sorted(out) == items
    assert items == list(range(20)), "Danh sách gốc không được thay đổi"


def test_shuffle_list_reproducible_with_seed():
    assert shuffle_list(range(10), random.Random(7)) == shuffle_list(range(10), random.Random(7))


def test_shuffle_list_covers_all_positions():
    seen = Counter(tuple(shuffle_list([1, 2, 3], random.Random(s))) for s in range(600))
    assert len(seen) == 6


@pytest.mark.parametrize("seed", range(25))
def test_answer_key_survives_shuffle(seed):
    paper = generate(_pool(), 5, "101", random.Random(seed))

    assert len(paper.ordered_questions) == 5
    assert sorted(paper.answer_key) == [1, 2, 3, 4, 5]
    _assert_key_matches(paper)


def test_resolved_contents_for_each_encoding():
    paper = generate(_pool(), 5, "102", random.Random(3))
    by_id = {q.id: paper.answer_key[pos] for pos, q in enumerate(paper.ordered_questions, 1)}

    assert by_id["q1"].content == "30"
    assert by_id["q2"].content == "Hà Nội"
    assert by_id["q3"].content == "x = 2"
    assert by_id["q4"].content == "2"
    assert by_id["q1"].explanation == "Nhân."
    assert by_id["q2"].explanation == NO_MC_EXPLANATION


def test_options_are_permutation_with_fresh_prefixes():
    pool = _pool()
    originals = {q.id: q for q in pool}
    paper = generate(pool, len(pool), "103", random.Random(11))

    for q in paper.ordered_questions:
        src = originals[q.id]
        assert Counter(strip_option_prefix(o) for o in q.options) == \
            Counter(strip_option_prefix(o) for o in src.options)
        for i, opt in enumerate(q.options):
            assert opt.startswith(f"{LETTERS[i]}. ")


def test_pool_is_not_mutated():
    pool = _pool()
    before = [list(q.options) for q in pool]
    generate(pool, 5, "104", random.Random(5))

    assert [q.options for q in pool] == before
    assert [q.id for q in pool] == ["q1", "q2", "q3", "q4", "q5"]


def test_unresolved_answer_is_never_guessed():
    bad = QuestionRecord(id="bad", content="?", options=["A. 1", "B. 2"], correct_answer="7")
    paper = generate([bad], 1, "105", random.Random(0))
    entry = paper.answer_key[1]

    assert entry.correct_letter == UNRESOLVED_LETTER
    assert entry.status == AnswerStatus.UNRESOLVED
    assert not entry.is_gradable
    assert paper.defective_positions() == [1]


def test_letter_beyond_options_is_unresolved():
    q = QuestionRecord(id="x", content="?", options=["A. 1", "B. 2"], correct_answer="D")
    _, entry = shuffle_question(q, random.Random(0))

    assert entry.status == AnswerStatus.UNRESOLVED
    assert entry.content == ""


def test_multiple_choice_without_options_is_unresolved():
    q = QuestionRecord(id="x", content="?", options=[], correct_answer="A")
    _, entry = shuffle_question(q, random.Random(0))
    assert entry.status == AnswerStatus.UNRESOLVED


def test_essay_entry():
    essay = QuestionRecord(id="e", content="Viết đoạn văn.", kind=QuestionKind.ESSAY)
    paper = generate([essay], 1, "106", random.Random(0))
    entry = paper.answer_key[1]

    assert entry.correct_letter == ESSAY_LETTER
    assert entry.status == AnswerStatus.ESSAY
    assert entry.content == ESSAY_GUIDANCE
    assert paper.ordered_questions[0].options == []


def test_essay_with_options_is_contract_violation():
    broken = QuestionRecord(id="e", content="?", kind=QuestionKind.ESSAY, options=["A. x"])
    with pytest.raises(ContractViolationError) as exc:
        generate([broken], 1, "107", random.Random(0))
    assert exc.value.question_id == "e"


def test_count_limits():
    pool = _pool()
    assert len(generate(pool, 2, "108", random.Random(0)).ordered_questions) == 2
    assert len(generate(pool, 50, "108", random.Random(0)).ordered_questions) == 5
    assert generate(pool, 0, "108", random.Random(0)).answer_key == {}
    with pytest.raises(ContractViolationError):
        generate(pool, -1, "108")


def test_regeneration_gives_different_papers():
    pool = _pool()
    orders = {tuple(q.id for q in generate(pool, 2, "X1").ordered_questions) for _ in range(20)}

    assert len(orders) > 1, "Sinh lại đề phải cho thứ tự khác"


def test_same_seed_same_paper():
    a = generate(_pool(), 4, "X2", random.Random(42))
    b = generate(_pool(), 4, "X2", random.Random(42))

    assert a.to_dict() == b.to_dict()


def test_versions_are_independent():
    papers = generate_versions(_pool(), 5, ["111", "222", "333"], random.Random(9))

    assert [p.exam_code for p in papers] == ["111", "222", "333"]
    for p in papers:
        _assert_key_matches(p)


def test_exam_codes():
    code = random_exam_code(random.Random(0))
    assert len(code) == 3 and 100 <= int(code) <= 999

    codes = unique_exam_codes(10, random.Random(0))
    assert len(set(codes)) == 10


def test_paper_views():
    paper = generate(_pool()[:2], 2, "109", random.Random(1))

    letters = paper.answer_letters()
    assert set(letters) == {1, 2}
    assert all(l in LETTERS for l in letters.values())

    plain = paper.unprefixed_questions()
    assert all(o[:2] not in ("A.", "B.", "C.", "D.") for q in plain for o in q.options)

    data = paper.to_dict()
    assert data["examCode"] == "109"
    assert set(data["answerKey"]) == {"1", "2"}
