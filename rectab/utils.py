import logging
import os
import shutil

logger = logging.getLogger(__name__)


def backup_name(file_path: str, index: int) -> str:
    """The name of the N-th backup: ``<root>.backup-N<ext>``."""
    root, ext = os.path.splitext(file_path)
    return f"{root}.backup-{index}{ext}"


def rotate_backups(file_path: str, max_backups: int = 5) -> bool:
    """Keep up to ``max_backups`` copies of a file before it is replaced.

    The most recent copy is ``.backup-1``; older ones are shifted up and the
    one that falls off the end is removed.

    Returns:
        True if a new backup of the file was created.
    """
    if not os.path.exists(file_path):
        return False

    oldest = backup_name(file_path, max_backups)
    if os.path.exists(oldest):
        try:
            os.remove(oldest)
        except OSError:
            logger.exception("Failed removing oldest backup: %s", oldest)

    for i in range(max_backups - 1, 0, -1):
        src = backup_name(file_path, i)
        if not os.path.exists(src):
            continue
        dst = backup_name(file_path, i + 1)
        try:
            os.replace(src, dst)
        except OSError:
            logger.exception("Failed rotating backup from %s to %s", src, dst)

    try:
        shutil.copy2(file_path, backup_name(file_path, 1))
    except OSError:
        logger.exception("Failed creating newest backup for: %s", file_path)
        return False
    return True


def replace_file(file_path: str, content: str) -> None:
    """Write a text file through a temporary file in the same directory."""
    tmp_path = f"{file_path}.tmp"
    with open(tmp_path, "w", encoding="utf-8") as f:
        f.write(content)
    os.replace(tmp_path, file_path)
