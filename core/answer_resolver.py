"""
core/answer_resolver.py
-----------------------------------
Chuẩn hóa đáp án đúng của câu trắc nghiệm.

Trường correct_answer trong ngân hàng tồn tại ở 3 dạng tùy nguồn nhập:
    - LETTER   : "B", "b.", "C)"          → tra theo vị trí phương án
    - PREFIXED : "B. 12 cm"                → bỏ tiền tố, so theo nội dung
    - CONTENT  : "12 cm"                   → so theo nội dung
Mọi dạng đều quy về một khóa so sánh (chữ thường, bỏ khoảng trắng) để
việc xáo phương án không bao giờ làm lệch đáp án.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from .schema import QuestionRecord


LETTERS = ["A", "B", "C", "D", "E", "F"]

_BARE_LETTER = re.compile(r"^([A-D])[.:)]?\s*$", re.IGNORECASE)
_LETTER_PREFIX = re.compile(r"^[A-D][.:)]\s*")
_WHITESPACE = re.compile(r"\s+")


class AnswerEncoding(str, Enum):
    LETTER = "LETTER"
    PREFIXED = "PREFIXED"
    CONTENT = "CONTENT"
    EMPTY = "EMPTY"


@dataclass(frozen=True)
class AnswerSpec:
    """Đáp án đã phân loại: encoding + chữ cái (nếu có) + phần nội dung."""
    encoding: AnswerEncoding
    text: str
    letter: Optional[str] = None

    @property
    def index(self) -> Optional[int]:
        if self.letter is None:
            return None
        return ord(self.letter) - ord("A")


def strip_option_prefix(text: str) -> str:
    """Bỏ tiền tố 'A. ', 'B)', 'C: ' ở đầu chuỗi."""
    if not text:
        return ""
    return _LETTER_PREFIX.sub("", text.strip()).strip()


def normalize_key(text: str) -> str:
    return _WHITESPACE.sub("", (text or "").lower())


def classify_answer(raw: str) -> AnswerSpec:
    raw = (raw or "").strip()
    if not raw:
        return AnswerSpec(AnswerEncoding.EMPTY, "")

    m = _BARE_LETTER.match(raw)
    if m:
        return AnswerSpec(AnswerEncoding.LETTER, "", letter=m.group(1).upper())

    if _LETTER_PREFIX.match(raw):
        return AnswerSpec(AnswerEncoding.PREFIXED, strip_option_prefix(raw), letter=raw[0])

    return AnswerSpec(AnswerEncoding.CONTENT, raw)


def resolve_correct_content(raw: str, clean_options: Sequence[str]) -> str:
    """
    Trả về nội dung đáp án đúng.
    Chỉ dạng LETTER tra theo vị trí; các dạng còn lại dùng nội dung đã bỏ tiền tố.
    Chữ cái vượt quá số phương án → chuỗi rỗng.
    """
    spec = classify_answer(raw)
    if spec.encoding == AnswerEncoding.LETTER:
        idx = spec.index
        if idx is not None and idx < len(clean_options):
            return clean_options[idx]
        return ""
    return spec.text


def find_option_index(content: str, options: Sequence[str]) -> int:
    """Vị trí phương án có khóa so sánh trùng với content, -1 nếu không có."""
    key = normalize_key(content)
    if not key:
        return -1
    for i, opt in enumerate(options):
        if normalize_key(opt) == key:
            return i
    return -1


def validate_record(record: QuestionRecord) -> List[str]:
    """
    Kiểm tra bất biến của câu hỏi, trả về danh sách vấn đề (rỗng = hợp lệ).
    Câu trắc nghiệm phải có phương án và đáp án phải khớp đúng một phương án.
    """
    issues: List[str] = []
    if not record.is_multiple_choice:
        if record.options:
            issues.append("essay_with_options")
        return issues

    if not record.options:
        issues.append("no_options")
        return issues

    clean = [strip_option_prefix(o) for o in record.options]
    content = resolve_correct_content(record.correct_answer, clean)
    if not content:
        issues.append("missing_answer")
        return issues

    key = normalize_key(content)
    matches = sum(1 for o in clean if normalize_key(o) == key)
    if matches == 0:
        issues.append("unresolved_answer")
    elif matches > 1:
        issues.append("ambiguous_answer")
    return issues


def find_defective(pool: Sequence[QuestionRecord]) -> List[QuestionRecord]:
    return [q for q in pool if validate_record(q)]
