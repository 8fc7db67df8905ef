"""
Logging utilities for refine_synteny.
Sets up multi-level logging to console and file.
"""

import logging
import queue
import sys
from pathlib import Path
from logging.handlers import QueueHandler, QueueListener

def setup_logging(output_dir: Path):
    """
    Setup logging to both stdout (INFO) and log.txt (DEBUG) in output directory.
    Records are handed to the handlers by a QueueListener so slow file writes
    do not hold up the pipeline.

    :param output_dir: Directory to save log.txt.
    :return: The QueueListener; call stop() on it to flush and close the handlers.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    log_file = output_dir / "log.txt"

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    # Console handler (INFO)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    # File handler (DEBUG)
    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    log_queue = queue.Queue(-1)
    listener = QueueListener(log_queue, console_handler, file_handler, respect_handler_level=True)
    listener.start()

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    # Remove existing handlers
    for h in root.handlers[:]:
        root.removeHandler(h)
    root.addHandler(QueueHandler(log_queue))

    root.info(f"Logging initialized. Log file: {log_file}")

    return listener
