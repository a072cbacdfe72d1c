"""Recursive folder tree comparison.

The destination tree is authoritative: every entry reachable under the
destination must exist under the source with the same type and, for files,
identical bytes. Entries that only exist in the source are not reported.
"""

import logging
import os

from driveverify.jobs.models import DiffResult

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def first_entry(path: str) -> str:
    """Return the first child of a directory, or the directory itself if empty.

    gdrive downloads a folder as a single subdirectory named after the remote
    folder, so the comparison root is one level down.
    """
    entries = sorted(os.listdir(path))
    if not entries:
        return path
    return os.path.join(path, entries[0])


def files_equal(left: str, right: str) -> bool:
    """Compare two files byte by byte."""
    if os.path.getsize(left) != os.path.getsize(right):
        return False
    with open(left, "rb") as f1, open(right, "rb") as f2:
        while True:
            chunk1 = f1.read(CHUNK_SIZE)
            chunk2 = f2.read(CHUNK_SIZE)
            if chunk1 != chunk2:
                return False
            if not chunk1:
                return True


def compare_tree(
    result: DiffResult,
    src_folder: str,
    dst_folder: str,
    current_path: str = "",
) -> DiffResult:
    """Accumulate destination entries that are missing from or differ in src.

    Entries are visited in sorted name order and reported relative to the
    comparison root, joined with "/".
    """
    logger.info(f"Comparing folder {src_folder} <=> {dst_folder}")
    if os.path.realpath(src_folder) == os.path.realpath(dst_folder):
        logger.warning("Same folder path, skip comparing")
        return result

    for item in sorted(os.listdir(dst_folder)):
        src_path = os.path.join(src_folder, item)
        dst_path = os.path.join(dst_folder, item)
        rel_path = f"{current_path}/{item}" if current_path else item

        if not os.path.exists(src_path) or os.path.isdir(src_path) != os.path.isdir(dst_path):
            logger.error(f"File not found: {rel_path}")
            result.missing.append(rel_path)
        elif os.path.isdir(dst_path):
            compare_tree(result, src_path, dst_path, rel_path)
        elif not files_equal(src_path, dst_path):
            logger.error(f"File differ: {rel_path}")
            result.mismatch.append(rel_path)

    return result
