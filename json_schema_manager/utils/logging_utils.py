import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

LOG_FILE_ENV_VAR = "JSM_LOG_FILE"
DEFAULT_LOG_FILE_NAME = ".jsm.log"


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int) -> None:
        super().__init__()
        self._max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self._max_level


def resolve_log_file(registry_root: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """Pick the debug log file: ``$JSM_LOG_FILE``, else ``<registry root>/.jsm.log``."""
    override = os.environ.get(LOG_FILE_ENV_VAR)
    if override:
        return Path(override)
    if registry_root is None:
        return None
    return Path(registry_root) / DEFAULT_LOG_FILE_NAME


def configure_split_stream_logging(
    *,
    level: int = logging.INFO,
    stderr_level: int = logging.WARNING,
    formatter: Optional[logging.Formatter] = None,
    log_file: Optional[Union[str, Path]] = None,
) -> None:
    """Configure root logging:

    - DEBUG/INFO go to stdout
    - WARNING/ERROR/CRITICAL go to stderr
    - everything from DEBUG up is appended to ``log_file`` when given

    Console output stays terse (the message only by default) while the log
    file keeps timestamps and logger names for later inspection.
    """

    root = logging.getLogger()
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.DEBUG if log_file is not None else level)

    if formatter is None:
        formatter = logging.Formatter("%(message)s")

    if stderr_level < logging.DEBUG:
        stderr_level = logging.DEBUG

    stdout_handler = logging.StreamHandler(stream=sys.stdout)
    stdout_handler.setLevel(level)
    stdout_handler.addFilter(_MaxLevelFilter(stderr_level - 1))
    stdout_handler.setFormatter(formatter)

    stderr_handler = logging.StreamHandler(stream=sys.stderr)
    stderr_handler.setLevel(max(stderr_level, level))
    stderr_handler.setFormatter(formatter)

    root.addHandler(stdout_handler)
    root.addHandler(stderr_handler)

    if log_file is not None:
        try:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
        except OSError as e:
            root.warning(f"Cannot open log file {log_file}: {e}")
            return
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        root.addHandler(file_handler)
