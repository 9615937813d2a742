# core/schema.py

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .errors import InvalidMatrixError, PoolFormatError


DEFAULT_FOLDER = "Mặc định"
ALL_FOLDERS = "Tất cả"

# Giá trị hiển thị đặc biệt trong đáp án
ESSAY_LETTER = "Tự luận"
UNRESOLVED_LETTER = "Lỗi/Chưa xác định"

NO_MC_EXPLANATION = "Không có giải thích chi tiết."
NO_ESSAY_EXPLANATION = "Không có giải thích."
ESSAY_GUIDANCE = "Xem hướng dẫn"

_PRESENTATION_PREFIX = re.compile(r"^[A-Z][.:)]\s*")


# ============================
# Kiểu liệt kê
# ============================

class QuestionKind(str, Enum):
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    ESSAY = "ESSAY"

    @classmethod
    def parse(cls, value: Any) -> "QuestionKind":
        """Chấp nhận 'MULTIPLE_CHOICE', 'MultipleChoice', 'essay'... Mặc định: trắc nghiệm."""
        if isinstance(value, QuestionKind):
            return value
        key = str(value or "").replace("_", "").replace(" ", "").upper()
        if key == "ESSAY":
            return cls.ESSAY
        return cls.MULTIPLE_CHOICE


class BloomLevel(str, Enum):
    """Sáu mức độ nhận thức Bloom (tên tiếng Việt là giá trị lưu trữ)."""
    REMEMBER = "Nhận biết"
    UNDERSTAND = "Thông hiểu"
    APPLY = "Vận dụng"
    ANALYZE = "Phân tích"
    EVALUATE = "Đánh giá"
    CREATE = "Sáng tạo"

    @classmethod
    def parse(cls, value: Any) -> Optional["BloomLevel"]:
        """Nhận tên tiếng Việt, tên tiếng Anh hoặc tên enum; không khớp trả None."""
        if value is None:
            return None
        if isinstance(value, BloomLevel):
            return value
        text = str(value).strip().lower()
        if not text:
            return None
        for level in cls:
            if text in (level.value.lower(), level.name.lower(), _BLOOM_ENGLISH[level]):
                return level
        return None


_BLOOM_ENGLISH = {
    BloomLevel.REMEMBER: "remember",
    BloomLevel.UNDERSTAND: "understand",
    BloomLevel.APPLY: "apply",
    BloomLevel.ANALYZE: "analyze",
    BloomLevel.EVALUATE: "evaluate",
    BloomLevel.CREATE: "create",
}


class AnswerStatus(str, Enum):
    RESOLVED = "RESOLVED"
    UNRESOLVED = "UNRESOLVED"
    ESSAY = "ESSAY"


# ============================
# Câu hỏi
# ============================

@dataclass
class QuestionRecord:
    """
    Một câu hỏi trong ngân hàng:
    - options chỉ có với câu trắc nghiệm, dạng "A. ..." hoặc nội dung thô
    - correct_answer có thể là chữ cái ("B"), chữ cái kèm nội dung ("B. 12") hoặc nội dung ("12")
    - review_notes: cờ cảnh báo cho bước duyệt thủ công
    """
    id: str
    content: str
    kind: QuestionKind = QuestionKind.MULTIPLE_CHOICE
    options: List[str] = field(default_factory=list)
    correct_answer: str = ""
    explanation: str = ""
    bloom_level: Optional[BloomLevel] = None
    image_ref: Optional[str] = None

    # Metadata phục vụ quản lý ngân hàng
    folder: str = DEFAULT_FOLDER
    category: Optional[str] = None
    review_notes: List[str] = field(default_factory=list)

    @property
    def is_multiple_choice(self) -> bool:
        return self.kind == QuestionKind.MULTIPLE_CHOICE

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "content": self.content,
            "type": self.kind.value,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
            "explanation": self.explanation,
            "bloomLevel": self.bloom_level.value if self.bloom_level else None,
            "imageUrl": self.image_ref,
            "folder": self.folder,
            "category": self.category,
        }
        if self.review_notes:
            data["reviewNotes"] = list(self.review_notes)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "QuestionRecord":
        """Đọc cả khóa kiểu UI (bloomLevel, correctAnswer) lẫn kiểu DB (bloom_level, correct_answer)."""
        if not isinstance(data, Mapping):
            raise PoolFormatError(f"Câu hỏi phải là object, nhận được {type(data).__name__}")
        qid = data.get("id", data.get("$id"))
        if qid is None or str(qid).strip() == "":
            raise PoolFormatError("Câu hỏi thiếu trường 'id'")

        options = data.get("options") or []
        if not isinstance(options, list):
            raise PoolFormatError(f"Câu {qid}: 'options' phải là danh sách")

        return cls(
            id=str(qid),
            content=str(data.get("content") or ""),
            kind=QuestionKind.parse(data.get("type", data.get("kind"))),
            options=[str(o) for o in options],
            correct_answer=str(_first(data, "correctAnswer", "correct_answer") or ""),
            explanation=str(data.get("explanation") or ""),
            bloom_level=BloomLevel.parse(_first(data, "bloomLevel", "bloom_level")),
            image_ref=_first(data, "imageUrl", "image", "image_ref"),
            folder=str(data.get("folder") or DEFAULT_FOLDER),
            category=data.get("category"),
            review_notes=list(data.get("reviewNotes") or []),
        )


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        if data.get(k) not in (None, ""):
            return data[k]
    return None


# ============================
# Ma trận đề
# ============================

@dataclass(frozen=True)
class ExamMatrix:
    """Số câu yêu cầu cho từng mức Bloom. Mức không khai báo = 0."""
    counts: Mapping[BloomLevel, int] = field(default_factory=dict)

    def __post_init__(self):
        full: Dict[BloomLevel, int] = {level: 0 for level in BloomLevel}
        for level, n in dict(self.counts).items():
            if not isinstance(level, BloomLevel):
                raise InvalidMatrixError(f"Mức độ không hợp lệ: {level!r}")
            if isinstance(n, bool) or not isinstance(n, int):
                raise InvalidMatrixError(f"Số câu cho '{level.value}' phải là số nguyên, nhận {n!r}")
            if n < 0:
                raise InvalidMatrixError(f"Số câu cho '{level.value}' không được âm ({n})", {level.value: n})
            full[level] = n
        object.__setattr__(self, "counts", full)

    @classmethod
    def from_mapping(cls, mapping: Mapping[Union[str, BloomLevel], int]) -> "ExamMatrix":
        counts: Dict[BloomLevel, int] = {}
        for key, n in mapping.items():
            level = BloomLevel.parse(key)
            if level is None:
                raise InvalidMatrixError(f"Mức độ không hợp lệ: {key!r}", dict(mapping))
            counts[level] = n
        return cls(counts=counts)

    def count(self, level: BloomLevel) -> int:
        return self.counts.get(level, 0)

    def total(self) -> int:
        return sum(self.counts.values())

    def requested(self) -> List[Tuple[BloomLevel, int]]:
        """Các mức có số câu > 0, theo thứ tự Bloom."""
        return [(level, self.counts[level]) for level in BloomLevel if self.counts[level] > 0]

    def to_dict(self) -> Dict[str, int]:
        return {level.value: self.counts[level] for level in BloomLevel}


# ============================
# Kết quả chọn câu
# ============================

@dataclass(frozen=True)
class ShortageError:
    """Một mức Bloom không đủ câu trong kho (giá trị trả về, không phải exception)."""
    level: BloomLevel
    available: int
    requested: int

    @property
    def missing(self) -> int:
        return self.requested - self.available

    @property
    def message(self) -> str:
        return f'Mức độ "{self.level.value}" chỉ có {self.available} câu trong kho (yêu cầu {self.requested})'


@dataclass(frozen=True)
class SelectionResult:
    ids: Tuple[str, ...] = ()
    shortages: Tuple[ShortageError, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.shortages


# ============================
# Đề đã sinh
# ============================

@dataclass(frozen=True)
class AnswerEntry:
    correct_letter: str
    content: str
    explanation: str
    status: AnswerStatus = AnswerStatus.RESOLVED

    @property
    def is_gradable(self) -> bool:
        """Chỉ đáp án đã xác định mới được dùng để chấm trắc nghiệm."""
        return self.status == AnswerStatus.RESOLVED

    def to_dict(self) -> Dict[str, str]:
        return {
            "correctLetter": self.correct_letter,
            "content": self.content,
            "explanation": self.explanation,
            "status": self.status.value,
        }


@dataclass
class GeneratedPaper:
    """
    Một mã đề hoàn chỉnh:
    - ordered_questions: thứ tự câu sau khi xáo, phương án đã gắn lại A./B./C.
    - answer_key: vị trí câu (từ 1) -> đáp án
    """
    exam_code: str
    ordered_questions: List[QuestionRecord] = field(default_factory=list)
    answer_key: Dict[int, AnswerEntry] = field(default_factory=dict)

    def answer_letters(self) -> Dict[int, str]:
        return {pos: entry.correct_letter for pos, entry in sorted(self.answer_key.items())}

    def defective_positions(self) -> List[int]:
        return [pos for pos, entry in sorted(self.answer_key.items())
                if entry.status == AnswerStatus.UNRESOLVED]

    def unprefixed_questions(self) -> List[QuestionRecord]:
        """Bản sao câu hỏi đã bỏ tiền tố A./B. ở phương án (bộ in tự đánh lại)."""
        return [
            replace(q, options=[_PRESENTATION_PREFIX.sub("", opt) for opt in q.options])
            for q in self.ordered_questions
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "examCode": self.exam_code,
            "questions": [q.to_dict() for q in self.ordered_questions],
            "answerKey": {str(pos): entry.to_dict() for pos, entry in sorted(self.answer_key.items())},
        }
