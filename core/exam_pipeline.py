# core/exam_pipeline.py

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .bloom_selector import select
from .exam_engine import generate, random_exam_code
from .schema import ALL_FOLDERS, ExamMatrix, GeneratedPaper, QuestionRecord, SelectionResult

logger = logging.getLogger(__name__)


@dataclass
class AssembledExam:
    """Kết quả ráp đề: danh sách câu đã chọn + mã đề (None nếu kho thiếu câu)."""
    selection: SelectionResult
    paper: Optional[GeneratedPaper] = None

    @property
    def ok(self) -> bool:
        return self.paper is not None


def records_by_ids(pool: Sequence[QuestionRecord], ids: Sequence[str]) -> List[QuestionRecord]:
    """Tra câu hỏi theo id, giữ thứ tự ids; id không còn trong kho bị bỏ qua."""
    index: Dict[str, QuestionRecord] = {q.id: q for q in pool}
    found = [index[i] for i in ids if i in index]
    if len(found) < len(ids):
        logger.warning(f"{len(ids) - len(found)} câu không còn trong ngân hàng, bỏ qua")
    return found


def assemble_exam(
    pool: Sequence[QuestionRecord],
    matrix: ExamMatrix,
    exam_code: Optional[str] = None,
    rng: Optional[random.Random] = None,
    folder: str = ALL_FOLDERS,
) -> AssembledExam:
    """Ma trận → chọn câu → sinh mã đề kèm đáp án."""
    rng = rng or random.Random()
    selection = select(pool, matrix, rng=rng, folder=folder)
    if not selection.ok:
        return AssembledExam(selection=selection)

    chosen = records_by_ids(pool, selection.ids)
    code = exam_code or random_exam_code(rng)
    paper = generate(chosen, len(chosen), code, rng)
    return AssembledExam(selection=selection, paper=paper)


def regenerate(
    pool: Sequence[QuestionRecord],
    question_ids: Sequence[str],
    exam_code: str,
    rng: Optional[random.Random] = None,
) -> GeneratedPaper:
    """Sinh lại đề từ danh sách câu đã lưu (không qua ma trận)."""
    chosen = records_by_ids(pool, question_ids)
    return generate(chosen, len(chosen), exam_code, rng)
