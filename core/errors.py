# core/errors.py

from typing import Any, Dict, Optional


class ExamEngineError(Exception):
    """Lỗi gốc của engine ráp đề."""


class ContractViolationError(ExamEngineError):
    """
    Dữ liệu vào vi phạm hợp đồng gọi hàm (lỗi lập trình, không phải lỗi dữ liệu người dùng).
    Ví dụ: câu tự luận lại mang danh sách phương án.
    """

    def __init__(self, message: str, question_id: Optional[str] = None):
        super().__init__(message)
        self.question_id = question_id


class InvalidMatrixError(ExamEngineError):
    """Ma trận đề có số lượng âm hoặc mức độ không hợp lệ."""

    def __init__(self, message: str, counts: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.counts = counts or {}


class EmptyMatrixError(ExamEngineError):
    """Ma trận đề có tổng số câu yêu cầu bằng 0."""


class PoolFormatError(ExamEngineError):
    """File ngân hàng câu hỏi không đọc được hoặc sai cấu trúc."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path
