"""
Structured logging configuration for cargo-temp.

Lifecycle events of a temporary project (creation, manifest writes, session,
preservation or deletion) are emitted as JSON records so they can be grepped
or shipped elsewhere.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

_RESERVED_RECORD_KEYS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "getMessage",
    "exc_info",
    "exc_text",
    "stack_info",
}


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class ProjectLogger:
    """Structured logger bound to the temporary project being worked on."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(f"cargo_temp.{name}")
        self._setup_logger()
        self.project_context: Dict[str, Any] = {}

    def _setup_logger(self) -> None:
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.WARNING)
            self.logger.propagate = False

    def set_project_context(
        self,
        project_id: Optional[str] = None,
        project_dir: Optional[str] = None,
    ) -> None:
        self.project_context = {}
        if project_id:
            self.project_context["project_id"] = project_id
        if project_dir:
            self.project_context["project_dir"] = project_dir

    def clear_project_context(self) -> None:
        self.project_context.clear()

    def _log(self, level: str, event_type: str, **kwargs) -> None:
        log_data = {"event_type": event_type, **self.project_context, **kwargs}
        getattr(self.logger, level)(event_type, extra=log_data)

    def info(self, event_type: str, **kwargs) -> None:
        self._log("info", event_type, **kwargs)

    def warning(self, event_type: str, **kwargs) -> None:
        self._log("warning", event_type, **kwargs)

    def error(self, event_type: str, **kwargs) -> None:
        self._log("error", event_type, **kwargs)

    def debug(self, event_type: str, **kwargs) -> None:
        self._log("debug", event_type, **kwargs)


# Global logger instances
_project_logger = ProjectLogger("project")
_manifest_logger = ProjectLogger("manifest")
_session_logger = ProjectLogger("session")


def _all_loggers() -> List[ProjectLogger]:
    return [_project_logger, _manifest_logger, _session_logger]


def log_project_created(project_id: str, project_dir: str, dependency_count: int) -> None:
    set_project_context(project_id, project_dir)
    _project_logger.info(
        "project_created",
        project_dir=project_dir,
        dependency_count=dependency_count,
    )


def log_dependencies_written(manifest_path: str, inline: int, blocks: int) -> None:
    _manifest_logger.info(
        "dependencies_written",
        manifest_path=manifest_path,
        inline_entries=inline,
        block_entries=blocks,
    )


def log_benchmark_generated(bench_file: str) -> None:
    _manifest_logger.info("benchmark_generated", bench_file=bench_file)


def log_session(event_type: str, command: List[str], **kwargs) -> None:
    """Log start or end of the interactive session."""
    _session_logger.info(event_type, program=command[0] if command else None, **kwargs)


def log_project_preserved(project_dir: str) -> None:
    _project_logger.info("project_preserved", preserved_at=project_dir)
    clear_project_context()


def log_project_deleted(project_dir: str) -> None:
    _project_logger.info("project_deleted", deleted=project_dir)
    clear_project_context()


def set_project_context(
    project_id: Optional[str] = None, project_dir: Optional[str] = None
) -> None:
    """Set project context for all loggers."""
    for logger in _all_loggers():
        logger.set_project_context(project_id, project_dir)


def clear_project_context() -> None:
    """Clear project context on all loggers."""
    for logger in _all_loggers():
        logger.clear_project_context()


def configure_logging(
    log_level: str = "WARNING",
    enable_json: bool = True,
    log_file_path: Optional[str] = None,
) -> None:
    """
    Configure logging for the application.

    Args:
        log_level: Level name applied to every cargo-temp logger
        enable_json: Emit JSON records, otherwise plain text
        log_file_path: Also write records to this file

    A file handler from an earlier call is closed and replaced.
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)

    if enable_json:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    file_handler = None
    if log_file_path:
        file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
        file_handler.setFormatter(formatter)

    for project_logger in _all_loggers():
        project_logger.logger.setLevel(level)
        for handler in list(project_logger.logger.handlers):
            if isinstance(handler, logging.FileHandler):
                project_logger.logger.removeHandler(handler)
                handler.close()
            else:
                handler.setFormatter(formatter)
        if file_handler is not None:
            project_logger.logger.addHandler(file_handler)

    logging.getLogger("cargo_temp").setLevel(level)
