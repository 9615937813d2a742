# core/__init__.py

"""
Core module: engine ráp đề & đáp án

Bao gồm:
- Bóc tách đề dán từ Word/Text thành câu hỏi chuẩn hóa
- Chọn câu theo ma trận mức độ Bloom
- Xáo câu, xáo phương án và lập đáp án đồng bộ theo vị trí

Các thành phần xuất khẩu phổ biến:
    QuestionRecord, ExamMatrix, GeneratedPaper, AnswerEntry
    parse
    select, availability
    generate, generate_versions, shuffle_list
    assemble_exam
"""

# Schema models
from .schema import (
    QuestionRecord,
    QuestionKind,
    BloomLevel,
    ExamMatrix,
    ShortageError,
    SelectionResult,
    AnswerEntry,
    AnswerStatus,
    GeneratedPaper,
    ESSAY_LETTER,
    UNRESOLVED_LETTER,
)

# Errors
from .errors import (
    ExamEngineError,
    ContractViolationError,
    InvalidMatrixError,
    EmptyMatrixError,
    PoolFormatError,
)

# Answer normalization
from .answer_resolver import (
    classify_answer,
    resolve_correct_content,
    validate_record,
    find_defective,
)

# Parser
from .text_parser import parse

# Shuffle & answer key
from .exam_engine import (
    shuffle_list,
    generate,
    generate_versions,
    random_exam_code,
)

# Bloom quota
from .bloom_selector import (
    select,
    availability,
    filter_by_folder,
)

# Pipeline
from .exam_pipeline import (
    assemble_exam,
    regenerate,
)


__all__ = [
    # Schema
    "QuestionRecord",
    "QuestionKind",
    "BloomLevel",
    "ExamMatrix",
    "ShortageError",
    "SelectionResult",
    "AnswerEntry",
    "AnswerStatus",
    "GeneratedPaper",
    "ESSAY_LETTER",
    "UNRESOLVED_LETTER",

    # Errors
    "ExamEngineError",
    "ContractViolationError",
    "InvalidMatrixError",
    "EmptyMatrixError",
    "PoolFormatError",

    # Answers
    "classify_answer",
    "resolve_correct_content",
    "validate_record",
    "find_defective",

    # Parser
    "parse",

    # Exam engine
    "shuffle_list",
    "generate",
    "generate_versions",
    "random_exam_code",

    # Selector
    "select",
    "availability",
    "filter_by_folder",

    # Pipeline
    "assemble_exam",
    "regenerate",
]
