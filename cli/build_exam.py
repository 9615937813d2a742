import argparse
import logging
import sys
from dataclasses import replace
from typing import Dict, List, Optional

from rich.table import Table
from tqdm import tqdm

from cli._common import console, setup_logging
from core.bloom_selector import availability, filter_by_folder, select
from core.config import ExamSettings, load_settings, make_rng
from core.errors import EmptyMatrixError, ExamEngineError, InvalidMatrixError
from core.exam_engine import generate, unique_exam_codes
from core.exam_pipeline import records_by_ids
from core.pool_store import load_pool, save_paper
from core.schema import ALL_FOLDERS, BloomLevel, ExamMatrix, GeneratedPaper

logger = logging.getLogger(__name__)


def parse_matrix_arg(text: str) -> ExamMatrix:
    """'Nhận biết=3, Vận dụng=2' hoặc 'remember=3,apply=2' -> ExamMatrix"""
    counts: Dict[str, int] = {}
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        if "=" not in part:
            raise InvalidMatrixError(f"Sai cú pháp ma trận: {part!r} (cần dạng Mức=số)")
        name, _, raw = part.partition("=")
        try:
            counts[name.strip()] = int(raw.strip())
        except ValueError:
            raise InvalidMatrixError(f"Số câu không hợp lệ cho {name.strip()!r}: {raw.strip()!r}") from None
    return ExamMatrix.from_mapping(counts)


def prompt_matrix(available: Dict[BloomLevel, int]) -> ExamMatrix:
    console.print("\n[magenta]📊 Nhập ma trận mức độ Bloom (Enter = 0):[/magenta]")
    counts: Dict[BloomLevel, int] = {}
    for level in BloomLevel:
        raw = input(f"  {level.value} (có {available[level]} câu): ").strip()
        try:
            counts[level] = int(raw) if raw else 0
        except ValueError:
            console.print("[yellow]⚠️ Giá trị không hợp lệ, mặc định: 0[/yellow]")
            counts[level] = 0
    return ExamMatrix(counts=counts)


def answer_key_table(paper: GeneratedPaper) -> Table:
    table = Table(title=f"Đáp án mã đề {paper.exam_code}")
    table.add_column("Câu", justify="right")
    table.add_column("Đáp án")
    table.add_column("Nội dung", overflow="fold", max_width=50)
    for pos, entry in sorted(paper.answer_key.items()):
        letter = entry.correct_letter if entry.is_gradable else f"[red]{entry.correct_letter}[/red]"
        table.add_row(str(pos), letter, entry.content)
    return table


def build_exams(
    settings: ExamSettings,
    matrix: Optional[ExamMatrix],
    pool_path: str,
    versions: int,
    exam_code: Optional[str] = None,
    folder: str = ALL_FOLDERS,
) -> List[GeneratedPaper]:
    """
    Đọc ngân hàng → chọn câu theo ma trận → sinh `versions` mã đề.
    Kho thiếu câu → trả về danh sách rỗng (đã in chi tiết từng mức).
    """
    pool = filter_by_folder(load_pool(pool_path), folder)
    rng = make_rng(settings.seed)

    if matrix is None:
        matrix = prompt_matrix(availability(pool))

    selection = select(pool, matrix, rng=rng)
    if not selection.ok:
        console.print("[red]❌ Không đủ câu hỏi trong kho:[/red]")
        for s in selection.shortages:
            console.print(f"  - {s.message}")
        return []

    chosen = records_by_ids(pool, selection.ids)
    codes = unique_exam_codes(versions, rng)
    if exam_code:
        codes = [exam_code] + [c for c in codes if c != exam_code][:versions - 1]

    papers: List[GeneratedPaper] = []
    for code in tqdm(codes, desc="🧩 Đang sinh mã đề", ncols=80):
        paper = generate(chosen, len(chosen), code, rng)
        path = save_paper(paper, settings.output_dir)
        logger.info(f"Mã đề {code}: {len(paper.ordered_questions)} câu → {path}")
        papers.append(paper)

    for paper in papers:
        console.print(answer_key_table(paper))
        bad = paper.defective_positions()
        if bad:
            console.print(f"[yellow]⚠️ Mã đề {paper.exam_code}: câu {bad} chưa xác định được đáp án.[/yellow]")
    return papers


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Ráp đề theo ma trận Bloom và sinh đáp án.")
    p.add_argument("--pool", help="File ngân hàng JSON (mặc định: EXAM_POOL_PATH)")
    p.add_argument("--matrix", help="Ví dụ: 'Nhận biết=3,Thông hiểu=2'. Bỏ trống để nhập tay.")
    p.add_argument("--versions", type=int, help="Số mã đề cần sinh (mặc định: EXAM_VERSIONS)")
    p.add_argument("--code", help="Mã đề cho phiên bản đầu tiên")
    p.add_argument("--seed", type=int, help="Cố định ngẫu nhiên (mặc định: EXAM_SEED)")
    p.add_argument("--folder", default=ALL_FOLDERS, help="Chỉ lấy câu trong thư mục này")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    if args.seed is not None:
        settings = replace(settings, seed=args.seed)
    setup_logging(settings, "build_exam.log")

    try:
        matrix = parse_matrix_arg(args.matrix) if args.matrix else None
        papers = build_exams(
            settings,
            matrix,
            args.pool or settings.pool_path,
            args.versions or settings.versions,
            exam_code=args.code,
            folder=args.folder,
        )
    except EmptyMatrixError as e:
        console.print(f"[yellow]⚠️ {e}[/yellow]")
        return 1
    except ExamEngineError as e:
        console.print(f"[red]🚨 Lỗi khi ráp đề:[/red] {e}")
        logger.exception("Lỗi khi ráp đề")
        return 1
    return 0 if papers else 2


if __name__ == "__main__":
    sys.exit(main())
