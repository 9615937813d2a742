# core/pool_store.py

import json
import logging
import os
from typing import List, Sequence

from .errors import PoolFormatError
from .schema import GeneratedPaper, QuestionRecord

logger = logging.getLogger(__name__)


def load_pool(path: str) -> List[QuestionRecord]:
    """Đọc ngân hàng câu hỏi từ file JSON (danh sách object câu hỏi)."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise PoolFormatError(f"Không tìm thấy file ngân hàng: {path}", path=path) from None
    except json.JSONDecodeError as e:
        raise PoolFormatError(f"File {path} không phải JSON hợp lệ: {e}", path=path) from e

    if isinstance(data, dict):
        data = data.get("questions", [])
    if not isinstance(data, list):
        raise PoolFormatError(f"File {path} phải chứa danh sách câu hỏi", path=path)

    pool = [QuestionRecord.from_dict(item) for item in data]
    logger.info(f"Loaded {len(pool)} questions from {path}")
    return pool


def save_pool(questions: Sequence[QuestionRecord], path: str) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump([q.to_dict() for q in questions], f, ensure_ascii=False, indent=2)
    logger.info(f"Saved {len(questions)} questions to {path}")


def save_paper(paper: GeneratedPaper, out_dir: str) -> str:
    """Ghi đề + đáp án ra out_dir/de_<mã đề>.json, trả về đường dẫn file."""
    os.makedirs(out_dir, exist_ok=True)
    path = os.path.join(out_dir, f"de_{paper.exam_code}.json")
    with open(path, "w", encoding="utf-8") as f:
        json.dump(paper.to_dict(), f, ensure_ascii=False, indent=2)
    return path
