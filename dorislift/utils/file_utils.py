"""File helpers shared by the directory converter: SQL discovery, run
statistics and output writing."""
import os
import csv
from typing import List, Dict, Iterable, Optional
from pathlib import Path

# Directories produced by earlier runs; never treated as input.
DEFAULT_EXCLUDED_DIRS = ('converted', 'logs', 'conversion_logs', '__pycache__')


def find_sql_files(input_path: str, exclude_dirs: Optional[Iterable[str]] = None) -> List[str]:
    """Return the sorted ``*.sql`` files under *input_path* (case-insensitive suffix).

    *input_path* may also name a single ``.sql`` file. Anything else yields ``[]``.
    """
    excluded = set(DEFAULT_EXCLUDED_DIRS if exclude_dirs is None else exclude_dirs)
    root_path = os.path.normpath(input_path)

    if os.path.isfile(root_path):
        return [root_path] if root_path.lower().endswith('.sql') else []

    found = []
    for root, dirs, files in os.walk(root_path):
        dirs[:] = [d for d in dirs if d not in excluded]
        found.extend(os.path.join(root, name) for name in files if name.lower().endswith('.sql'))
    return sorted(found)


def create_processing_stats() -> Dict[str, int]:
    """Counters reported as ``overall_statistics`` for one conversion run."""
    file_counters = ('total_files', 'files_successful', 'files_partial', 'files_failed', 'files_skipped')
    statement_counters = ('total_statements', 'statements_converted', 'statements_with_errors', 'statements_skipped')
    return dict.fromkeys(file_counters + statement_counters, 0)


def make_relative_path(file_path: str, base_path: str) -> str:
    """*file_path* relative to *base_path*; unchanged when no relative form exists."""
    if not file_path or not base_path:
        return file_path
    try:
        return os.path.relpath(file_path, base_path)
    except ValueError:
        # different drives on Windows
        return file_path


def write_file_content(file_path: str | Path, content: str):
    Path(file_path).parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, 'w', encoding='utf-8', newline='\n') as f:
        f.write(content)


def write_csv(file_path: str | Path, headers: list[str], rows: Iterable[tuple | list]):
    """Write *rows* under a *headers* line, creating parent directories."""
    Path(file_path).parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(headers)
        writer.writerows(rows)
