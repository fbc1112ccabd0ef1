"""Logging helpers for consistent console output."""
import logging
import sys
import tempfile
from pathlib import Path
from typing import Optional

LOGGER_NAME = "speakerguide"


def get_logger(suffix: str = "") -> logging.Logger:
    """Return the package logger, or a child of it."""
    return logging.getLogger(f"{LOGGER_NAME}.{suffix}" if suffix else LOGGER_NAME)


def setup_logging(verbose: bool = False, log_path: Optional[Path] = None) -> None:
    """Configure root logging for the CLI and the service."""
    level = logging.DEBUG if verbose else logging.INFO
    handlers = [logging.StreamHandler()]
    if log_path is not None:
        log_path = Path(log_path)
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_path, mode="a", encoding="utf-8"))
        except OSError as exc:
            fallback = Path(tempfile.gettempdir()) / "speakerguide.run.log"
            try:
                handlers.append(logging.FileHandler(fallback, mode="a", encoding="utf-8"))
                print(
                    f"[WARN] Failed to open log file at {log_path} ({exc}). "
                    f"Logging to {fallback} instead.",
                    file=sys.stderr,
                )
            except OSError:
                print(
                    f"[WARN] Failed to open log file at {log_path} ({exc}). "
                    "Continuing without file logging.",
                    file=sys.stderr,
                )
    logging.basicConfig(
        level=level,
        format="[%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )
    # requests/urllib3 are chatty at DEBUG and may echo headers.
    logging.getLogger("urllib3").setLevel(logging.WARNING)
