"""
core/exam_engine.py
-----------------------------------
Sinh mã đề: xáo thứ tự câu, xáo phương án và lập đáp án theo vị trí.

Đáp án được xác định theo NỘI DUNG (không nhớ chỉ số cũ), nên việc xáo
phương án không thể làm lệch đáp án. Câu không khớp được đáp án nào bị
đánh dấu UNRESOLVED thay vì đoán một chữ cái.
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence, Tuple, TypeVar

from .answer_resolver import LETTERS, find_option_index, resolve_correct_content, strip_option_prefix
from .errors import ContractViolationError
from .schema import (
    ESSAY_GUIDANCE,
    ESSAY_LETTER,
    NO_ESSAY_EXPLANATION,
    NO_MC_EXPLANATION,
    UNRESOLVED_LETTER,
    AnswerEntry,
    AnswerStatus,
    GeneratedPaper,
    QuestionRecord,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def shuffle_list(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Fisher-Yates trên bản sao, O(n). Không thay đổi danh sách gốc."""
    rng = rng or random.Random()
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def random_exam_code(rng: Optional[random.Random] = None) -> str:
    """Mã đề 3 chữ số (100-999)."""
    rng = rng or random.Random()
    return str(rng.randint(100, 999))


# ============================
# Xáo phương án + đáp án
# ============================

def shuffle_question(
    question: QuestionRecord,
    rng: random.Random,
) -> Tuple[QuestionRecord, AnswerEntry]:
    """Trả về (bản sao câu hỏi để trình bày, dòng đáp án tương ứng)."""
    if not question.is_multiple_choice:
        if question.options:
            raise ContractViolationError(
                f"Câu tự luận {question.id} không được có phương án", question_id=question.id
            )
        entry = AnswerEntry(
            correct_letter=ESSAY_LETTER,
            content=question.correct_answer or ESSAY_GUIDANCE,
            explanation=question.explanation or NO_ESSAY_EXPLANATION,
            status=AnswerStatus.ESSAY,
        )
        return replace(question, options=[]), entry

    if len(question.options) > len(LETTERS):
        raise ContractViolationError(
            f"Câu {question.id} có {len(question.options)} phương án, tối đa {len(LETTERS)}",
            question_id=question.id,
        )

    clean_options = [strip_option_prefix(opt) for opt in question.options]
    correct_content = resolve_correct_content(question.correct_answer, clean_options)

    shuffled = shuffle_list(clean_options, rng)
    presented = [f"{LETTERS[i]}. {opt}" for i, opt in enumerate(shuffled)]

    idx = find_option_index(correct_content, shuffled)
    if idx >= 0:
        letter, status = LETTERS[idx], AnswerStatus.RESOLVED
    else:
        letter, status = UNRESOLVED_LETTER, AnswerStatus.UNRESOLVED

    entry = AnswerEntry(
        correct_letter=letter,
        content=correct_content,
        explanation=question.explanation or NO_MC_EXPLANATION,
        status=status,
    )
    return replace(question, options=presented), entry


# ============================
# Sinh đề
# ============================

def generate(
    pool: Sequence[QuestionRecord],
    count: int,
    exam_tag: str,
    rng: Optional[random.Random] = None,
) -> GeneratedPaper:
    """
    Chọn ngẫu nhiên `count` câu từ pool (count >= len(pool) → lấy hết),
    xáo phương án từng câu và lập đáp án theo vị trí 1..n.

    Tham số:
        pool: danh sách câu hỏi (không bị thay đổi)
        count: số câu của đề
        exam_tag: mã đề
        rng: nguồn ngẫu nhiên; truyền random.Random(seed) để cố định đề
    """
    if count < 0:
        raise ContractViolationError(f"Số câu không được âm ({count})")

    rng = rng or random.Random()
    selected = shuffle_list(pool, rng)[:count]

    paper = GeneratedPaper(exam_code=str(exam_tag))
    for pos, question in enumerate(selected, start=1):
        presented, entry = shuffle_question(question, rng)
        if entry.status == AnswerStatus.UNRESOLVED:
            logger.warning(
                f"⚠️ Mã đề {exam_tag} câu {pos} (id={question.id}): "
                f"không khớp được đáp án {question.correct_answer!r} với phương án nào"
            )
        paper.ordered_questions.append(presented)
        paper.answer_key[pos] = entry

    logger.debug(f"Mã đề {exam_tag}: {len(selected)} câu, {len(paper.defective_positions())} câu lỗi đáp án")
    return paper


def generate_versions(
    pool: Sequence[QuestionRecord],
    count: int,
    exam_codes: Iterable[str],
    rng: Optional[random.Random] = None,
) -> List[GeneratedPaper]:
    """Nhiều mã đề độc lập từ cùng một tập câu (in nhiều phiên bản)."""
    rng = rng or random.Random()
    return [generate(pool, count, code, rng) for code in exam_codes]


def unique_exam_codes(n: int, rng: Optional[random.Random] = None) -> List[str]:
    """n mã đề 3 chữ số khác nhau."""
    if n < 0 or n > 900:
        raise ContractViolationError(f"Số mã đề phải trong khoảng 0-900 ({n})")
    rng = rng or random.Random()
    codes: List[str] = []
    while len(codes) < n:
        code = random_exam_code(rng)
        if code not in codes:
            codes.append(code)
    return codes
