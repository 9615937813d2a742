# core/bloom_selector.py

from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional, Sequence

from .errors import EmptyMatrixError
from .exam_engine import shuffle_list
from .schema import (
    ALL_FOLDERS,
    DEFAULT_FOLDER,
    BloomLevel,
    ExamMatrix,
    QuestionRecord,
    SelectionResult,
    ShortageError,
)

logger = logging.getLogger(__name__)


# ============================
# Lọc ngân hàng câu
# ============================

def filter_by_folder(pool: Sequence[QuestionRecord], folder: str = ALL_FOLDERS) -> List[QuestionRecord]:
    """Giới hạn theo thư mục câu hỏi. 'Tất cả' = toàn bộ ngân hàng."""
    if folder == ALL_FOLDERS:
        return list(pool)
    return [q for q in pool if (q.folder or DEFAULT_FOLDER) == folder]


def candidates_for(pool: Sequence[QuestionRecord], level: BloomLevel) -> List[QuestionRecord]:
    return [q for q in pool if q.bloom_level == level]


def availability(pool: Sequence[QuestionRecord]) -> Dict[BloomLevel, int]:
    """Số câu sẵn có theo từng mức Bloom (hiển thị cạnh ma trận)."""
    counts = {level: 0 for level in BloomLevel}
    for q in pool:
        if q.bloom_level is not None:
            counts[q.bloom_level] += 1
    return counts


def find_shortages(pool: Sequence[QuestionRecord], matrix: ExamMatrix) -> List[ShortageError]:
    """Tất cả các mức không đủ câu (không dừng ở mức đầu tiên)."""
    have = availability(pool)
    return [
        ShortageError(level=level, available=have[level], requested=need)
        for level, need in matrix.requested()
        if have[level] < need
    ]


# ============================
# API chính
# ============================

def select(
    pool: Sequence[QuestionRecord],
    matrix: ExamMatrix,
    rng: Optional[random.Random] = None,
    folder: str = ALL_FOLDERS,
) -> SelectionResult:
    """
    Chọn câu theo ma trận Bloom.

    - Mức nào thiếu câu → ghi ShortageError, không rút câu từ mức khác.
    - Có bất kỳ mức thiếu → trả về toàn bộ danh sách thiếu và ids rỗng.
    - Đủ câu → ghép các mức rồi xáo một lần nữa để trộn mức độ.
    """
    if matrix.total() <= 0:
        raise EmptyMatrixError("Vui lòng nhập số lượng câu hỏi vào ma trận.")

    rng = rng or random.Random()
    scoped = filter_by_folder(pool, folder)

    picked: List[str] = []
    shortages: List[ShortageError] = []

    for level, need in matrix.requested():
        cands = candidates_for(scoped, level)
        if len(cands) < need:
            shortages.append(ShortageError(level=level, available=len(cands), requested=need))
            continue
        picked.extend(q.id for q in shuffle_list(cands, rng)[:need])

    if shortages:
        for s in shortages:
            logger.warning(s.message)
        return SelectionResult(ids=(), shortages=tuple(shortages))

    ids = shuffle_list(picked, rng)
    logger.info(f"Đã chọn {len(ids)} câu theo ma trận {matrix.to_dict()}")
    return SelectionResult(ids=tuple(ids), shortages=())
