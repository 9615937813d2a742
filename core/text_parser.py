"""
core/text_parser.py
-----------------------------------
Bóc tách đề thi dán từ Word/Text thành danh sách QuestionRecord.

Các mẫu nhập được nhận diện:
    - Mẫu 1: dấu * trước phương án đúng       (*A. ...)
    - Mẫu 2: bảng đáp án cuối bài              (BẢNG ĐÁP ÁN  1C 2B ...)
    - Mẫu 3: dòng "Chọn A/B/C/D" trong câu
    - Mẫu 4: đánh số kiểu "1." / "2)" thay cho "Câu 1"

Hàm parse() thuần túy, không ném lỗi với nội dung sai định dạng: phần
không đọc được bị bỏ qua, câu đáng ngờ được gắn review_notes để người
nhập kiểm tra lại.
"""

from __future__ import annotations

import hashlib
import logging
import re
import unicodedata
from typing import Dict, List, Optional, Tuple

from .answer_resolver import LETTERS, validate_record
from .schema import DEFAULT_FOLDER, BloomLevel, QuestionKind, QuestionRecord

logger = logging.getLogger(__name__)

_FLAGS = re.IGNORECASE

# ==============================
# Biểu thức nhận diện
# ==============================
_BLOCK_START = re.compile(r"(?=\n\s*(?:Câu\s*\d+|\d+\s*[.)]))", _FLAGS)
_NUMBERING = re.compile(r"^(?:Câu\s*(\d+)|(\d+)\s*[.)])", _FLAGS)
_NUMBERING_STRIP = re.compile(
    r"^(?:Câu\s*\d+(?:\.\d+)*(?:\s*\([^)]*\))?\s*[.:]?|\d+\s*[.)])\s*", _FLAGS
)

# Phần lời giải cuối đề chỉ nhận tiêu đề viết hoa trên một dòng riêng
_TAIL_START = re.compile(
    r"^[ \t]*(?:(?i:BẢNG ĐÁP ÁN)|(?:LỜI GIẢI CHI TIẾT|HƯỚNG DẪN GIẢI)[ \t:]*$)", re.MULTILINE
)
_TABLE_HEADING = re.compile(r"BẢNG ĐÁP ÁN", _FLAGS)
_SOLUTIONS_HEADING = re.compile(r"Hướng dẫn giải|LỜI GIẢI CHI TIẾT", _FLAGS)
_TABLE_TOKEN = re.compile(r"(\d+)\s*[.:)\-]?\s*([A-D])(?![^\W\d_])", _FLAGS)
_SOLUTION_BLOCK = re.compile(
    r"Câu\s*(\d+)[^\n]*\n(.*?)(?=\nCâu\s*\d+[^\n]*\n|\Z)", _FLAGS | re.DOTALL
)

# Tiêu đề phần đứng đầu dòng; dạng "A./B." chỉ nhận chữ in hoa trên một dòng riêng
_ESSAY_SECTION = re.compile(
    r"^[ \t]*(?:(?i:Phần[ \t]*(?:2|II)\.?[ \t]*TỰ LUẬN)|B\.[ \t]*TỰ LUẬN[ \t:]*$)", re.MULTILINE
)
_SECTION_HEADING = re.compile(
    r"^[ \t]*(?:(?i:Phần[ \t]*(?:1|2|I|II)\.?[ \t]*(?:TỰ LUẬN|TRẮC NGHIỆM))"
    r"|[AB]\.[ \t]*(?:TỰ LUẬN|TRẮC NGHIỆM)[ \t:]*$).*",
    re.MULTILINE | re.DOTALL,
)

_IMAGE = re.compile(r"\[img:([^\]]+)\]", _FLAGS)
_CHOOSE = re.compile(r"\bChọn\s+([A-D])\b", _FLAGS)
_EXPLANATION = re.compile(r"(?:Hướng dẫn giải|Lời giải|Cách giải:).*", _FLAGS | re.DOTALL)

_OPTION_LINE = re.compile(r"^(\*)?\s*([A-Da-d])[.:)]\s*")
_SPACES = re.compile(r"[ \t]+")

# Cờ cho bước duyệt thủ công
NOTE_MULTI_OPTION_LINE = "multi_option_line"
NOTE_CONFLICTING_MARKERS = "conflicting_answer_markers"
NOTE_ESSAY_CHOICE = "choice_on_essay"


# ==============================
# Phần cuối đề: bảng đáp án + lời giải
# ==============================

def _split_tail(text: str) -> Tuple[str, str]:
    m = _TAIL_START.search(text)
    if not m:
        return text, ""
    return text[:m.start()], text[m.start():]


def parse_answer_table(tail: str) -> Dict[str, str]:
    """'BẢNG ĐÁP ÁN\\n1C 2B 3.A' -> {'1': 'C', '2': 'B', '3': 'A'}"""
    heading = _TABLE_HEADING.search(tail)
    if not heading:
        return {}
    body = tail[heading.end():]
    stop = _SOLUTIONS_HEADING.search(body)
    if stop:
        body = body[:stop.start()]
    return {num: letter.upper() for num, letter in _TABLE_TOKEN.findall(body)}


def parse_solutions(tail: str) -> Dict[str, str]:
    heading = _SOLUTIONS_HEADING.search(tail)
    if not heading:
        return {}
    section = tail[heading.start():]
    return {m.group(1): m.group(2).strip() for m in _SOLUTION_BLOCK.finditer(section) if m.group(2).strip()}


# ==============================
# Tách câu
# ==============================

def _split_blocks(text: str) -> List[Tuple[int, str]]:
    """Trả về (vị trí bắt đầu, khối) theo các dòng 'Câu N' hoặc 'N.'."""
    cuts = [0] + [m.start() for m in _BLOCK_START.finditer(text) if m.start() > 0]
    cuts.append(len(text))
    blocks = []
    for start, end in zip(cuts, cuts[1:]):
        chunk = text[start:end].strip()
        if chunk:
            blocks.append((start, chunk))
    return blocks


def _collapse(text: str) -> str:
    return _SPACES.sub(" ", text).strip()


def _next_letter(letter: str) -> Optional[str]:
    idx = ord(letter.upper()) - ord("A") + 1
    return chr(ord("A") + idx) if idx < 4 else None


def split_option_line(line: str) -> List[Tuple[bool, str]]:
    """
    Tách một dòng phương án thành [(là đáp án đúng, nội dung), ...].
    Nhiều phương án trên một dòng chỉ được tách khi chữ cái kế tiếp đúng thứ tự
    (A. 1  B. 2), để "A. Vitamin C." không bị cắt nhầm.
    """
    m = _OPTION_LINE.match(line)
    if not m:
        return []
    items: List[Tuple[bool, str]] = []
    starred, letter, rest = bool(m.group(1)), m.group(2), line[m.end():]
    while True:
        expected = _next_letter(letter)
        nxt = None
        if expected:
            nxt = re.search(r"\s+(\*)?\s*(" + expected + r")[.:)]\s*", rest, _FLAGS)
        if not nxt:
            items.append((starred, _collapse(rest)))
            return items
        items.append((starred, _collapse(rest[:nxt.start()])))
        starred, letter, rest = bool(nxt.group(1)), nxt.group(2), rest[nxt.end():]


def _question_id(index: int, content: str) -> str:
    digest = hashlib.sha1(f"{index}:{content}".encode("utf-8")).hexdigest()
    return f"txt-{digest[:12]}"


# ==============================
# Hàm chính
# ==============================

def parse(
    raw_text: str,
    *,
    bloom_level: Optional[BloomLevel] = None,
    folder: str = DEFAULT_FOLDER,
) -> List[QuestionRecord]:
    """
    Phân tích text thô thành danh sách câu hỏi.

    Tham số:
        raw_text: nội dung dán từ Word/Text
        bloom_level: mức Bloom gán cho toàn bộ câu nhập (None = chưa phân loại)
        folder: thư mục ngân hàng đích
    """
    if not isinstance(raw_text, str):
        raise TypeError(f"raw_text phải là str, nhận {type(raw_text).__name__}")

    text = unicodedata.normalize("NFC", raw_text).replace("\r\n", "\n").replace("\r", "\n")
    body, tail = _split_tail(text)
    answer_table = parse_answer_table(tail)
    solutions = parse_solutions(tail)

    essay_match = _ESSAY_SECTION.search(body)
    essay_start = essay_match.start() if essay_match else len(body)

    questions: List[QuestionRecord] = []
    for index, (offset, block) in enumerate(_split_blocks(body)):
        num_match = _NUMBERING.match(block)
        if not num_match:
            logger.debug(f"Bỏ qua đoạn không có số thứ tự: {block[:40]!r}")
            continue

        q = _parse_block(block, num_match, in_essay_section=offset > essay_start)
        if q is None:
            continue

        number = num_match.group(1) or num_match.group(2)
        if not q.correct_answer and q.is_multiple_choice and number in answer_table:
            q.correct_answer = answer_table[number]
        if not q.explanation and number in solutions:
            q.explanation = solutions[number]

        q.id = _question_id(index, q.content)
        q.bloom_level = bloom_level
        q.folder = folder
        for issue in validate_record(q):
            if issue not in q.review_notes:
                q.review_notes.append(issue)
        questions.append(q)

    logger.info(
        f"Đã phân tích {len(questions)} câu hỏi"
        f" (bảng đáp án: {len(answer_table)} mục, lời giải: {len(solutions)} mục)"
    )
    return questions


def _parse_block(block: str, num_match: re.Match, in_essay_section: bool) -> Optional[QuestionRecord]:
    q = QuestionRecord(id="", content="")
    number = num_match.group(1) or num_match.group(2)

    img = _IMAGE.search(block)
    if img:
        q.image_ref = img.group(1).strip()
        block = block[:img.start()] + block[img.end():]

    chosen = _CHOOSE.search(block)
    if chosen:
        q.correct_answer = chosen.group(1).upper()
        block = block[:chosen.start()] + block[chosen.end():]

    expl = _EXPLANATION.search(block)
    if expl:
        q.explanation = re.sub(r"\n{2,}", "\n", _SPACES.sub(" ", expl.group(0))).strip()
        block = block[:expl.start()]

    block = _SECTION_HEADING.sub("", block)

    stem_lines: List[str] = []
    if in_essay_section:
        stem_lines = block.split("\n")
    else:
        for line in block.split("\n"):
            clean = line.strip()
            parts = split_option_line(clean)
            if parts:
                if len(parts) > 1 and NOTE_MULTI_OPTION_LINE not in q.review_notes:
                    q.review_notes.append(NOTE_MULTI_OPTION_LINE)
                for starred, content in parts:
                    letter = LETTERS[len(q.options)] if len(q.options) < len(LETTERS) else "?"
                    q.options.append(f"{letter}. {content}")
                    if starred:
                        if chosen and q.correct_answer != letter:
                            q.review_notes.append(NOTE_CONFLICTING_MARKERS)
                        q.correct_answer = letter
            elif not q.options:
                stem_lines.append(line)
            elif clean:
                q.options[-1] += " " + _collapse(clean)

    content = _NUMBERING_STRIP.sub("", "\n".join(stem_lines).strip(), count=1).strip()
    content = re.sub(r"\n{3,}", "\n\n", _SPACES.sub(" ", content))
    if not content:
        logger.debug(f"Câu {number}: nội dung rỗng, bỏ qua")
        return None

    q.content = content
    q.kind = QuestionKind.MULTIPLE_CHOICE if q.options and not in_essay_section else QuestionKind.ESSAY
    if q.kind == QuestionKind.ESSAY and chosen:
        q.correct_answer = ""
        q.review_notes.append(NOTE_ESSAY_CHOICE)
    return q
