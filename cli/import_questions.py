import argparse
import logging
import os
import sys
from typing import List, Optional

from rich.table import Table

from cli._common import console, setup_logging
from core.config import load_settings
from core.errors import ExamEngineError
from core.pool_store import load_pool, save_pool
from core.schema import DEFAULT_FOLDER, BloomLevel, QuestionRecord
from core.text_parser import parse

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Import đề thi từ file text vào ngân hàng câu hỏi (JSON).")
    p.add_argument("input", help="File text chứa đề (dán từ Word)")
    p.add_argument("--out", help="File ngân hàng JSON đích (mặc định: EXAM_POOL_PATH)")
    p.add_argument("--bloom", help="Mức Bloom gán cho các câu nhập, ví dụ 'Nhận biết' hoặc 'apply'")
    p.add_argument("--folder", default=DEFAULT_FOLDER, help="Thư mục câu hỏi")
    p.add_argument("--append", action="store_true", help="Ghi nối vào ngân hàng có sẵn")
    return p


def review_table(questions: List[QuestionRecord]) -> Table:
    table = Table(title=f"Xem trước {len(questions)} câu hỏi")
    table.add_column("#", justify="right")
    table.add_column("Loại")
    table.add_column("Nội dung", overflow="fold", max_width=60)
    table.add_column("PA", justify="right")
    table.add_column("Đáp án")
    table.add_column("Cảnh báo", style="yellow")
    for i, q in enumerate(questions, 1):
        table.add_row(
            str(i),
            "TN" if q.is_multiple_choice else "TL",
            q.content.splitlines()[0] if q.content else "",
            str(len(q.options)),
            q.correct_answer or "-",
            ", ".join(q.review_notes),
        )
    return table


def run_import(
    input_path: str,
    out_path: str,
    bloom: Optional[str] = None,
    folder: str = DEFAULT_FOLDER,
    append: bool = False,
) -> List[QuestionRecord]:
    level = BloomLevel.parse(bloom) if bloom else None
    if bloom and level is None:
        raise ValueError(f"Mức Bloom không hợp lệ: {bloom!r}")

    with open(input_path, "r", encoding="utf-8") as f:
        raw = f.read()

    questions = parse(raw, bloom_level=level, folder=folder)
    console.print(review_table(questions))

    flagged = [q for q in questions if q.review_notes]
    if flagged:
        console.print(f"[yellow]⚠️ {len(flagged)} câu cần kiểm tra lại trước khi dùng.[/yellow]")

    existing: List[QuestionRecord] = []
    if append and os.path.exists(out_path):
        existing = load_pool(out_path)

    # id trong ngân hàng là duy nhất: câu đã có thì bỏ qua
    known = {q.id for q in existing}
    fresh = [q for q in questions if q.id not in known]
    skipped = len(questions) - len(fresh)
    if skipped:
        logger.info(f"Bỏ qua {skipped} câu đã có trong {out_path}")
        console.print(f"[yellow]⚠️ Bỏ qua {skipped} câu trùng với ngân hàng hiện có.[/yellow]")

    save_pool(existing + fresh, out_path)
    console.print(f"[green]✅ Đã lưu {len(fresh)} câu vào {out_path}[/green]")
    return fresh


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    setup_logging(settings, "import_questions.log")

    try:
        run_import(
            args.input,
            args.out or settings.pool_path,
            bloom=args.bloom,
            folder=args.folder,
            append=args.append,
        )
    except (ExamEngineError, ValueError, OSError) as e:
        console.print(f"[red]🚨 Lỗi khi import:[/red] {e}")
        logger.exception("Lỗi khi import đề")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
