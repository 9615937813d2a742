# cli/_common.py

import logging
import os

from rich.console import Console

from core.config import ExamSettings

console = Console()

LOG_FORMAT = "[%(asctime)s] %(levelname)s - %(message)s"


def setup_logging(settings: ExamSettings, log_name: str) -> None:
    os.makedirs(settings.log_dir, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(os.path.join(settings.log_dir, log_name), encoding="utf-8"),
            logging.StreamHandler(),
        ],
    )
