# core/config.py

import os
import pathlib
import random
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

ROOT = pathlib.Path(__file__).resolve().parent.parent   # thư mục gốc project
ENV_FILE = ROOT / ".env"


@dataclass(frozen=True)
class ExamSettings:
    seed: Optional[int] = None          # cố định đề khi in hàng loạt
    log_level: str = "INFO"
    log_dir: str = "logs"
    pool_path: str = "data/pool.json"
    output_dir: str = "results"
    versions: int = 1


def _int_env(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Biến môi trường {name} phải là số nguyên, nhận {raw!r}") from None


def load_settings(env_path: Optional[pathlib.Path] = None) -> ExamSettings:
    """Đọc .env (nếu có) rồi lấy cấu hình từ biến môi trường."""
    load_dotenv(dotenv_path=env_path or ENV_FILE)

    versions = _int_env("EXAM_VERSIONS", 1)
    if versions < 1:
        raise ValueError(f"EXAM_VERSIONS phải >= 1, nhận {versions}")

    return ExamSettings(
        seed=_int_env("EXAM_SEED", None),
        log_level=os.getenv("EXAM_LOG_LEVEL", "INFO").upper(),
        log_dir=os.getenv("EXAM_LOG_DIR", "logs"),
        pool_path=os.getenv("EXAM_POOL_PATH", "data/pool.json"),
        output_dir=os.getenv("EXAM_OUTPUT_DIR", "results"),
        versions=versions,
    )


def make_rng(seed: Optional[int] = None) -> random.Random:
    """Nguồn ngẫu nhiên truyền vào select/generate. seed=None → mỗi lần một đề khác."""
    return random.Random(seed) if seed is not None else random.Random()
