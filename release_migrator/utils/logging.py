"""
Logging module for the Helm release migration tool
"""

import json
import logging
import os
from typing import Any, List, Optional

# Module-level flag to track if command output logging is enabled
_DEBUG_COMMANDS_ENABLED = False

_STANDARD_RECORD_ATTRS = (
    "args",
    "asctime",
    "created",
    "exc_info",
    "exc_text",
    "filename",
    "funcName",
    "id",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "taskName",
    "thread",
    "threadName",
)


class JsonFormatter(logging.Formatter):
    def format(self, record):
        data = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
        }
        # Include any additional attributes from the record
        for key, value in record.__dict__.items():
            if key not in _STANDARD_RECORD_ATTRS:
                data[key] = value
        return json.dumps(data, default=str)


class EnhancedFormatter(logging.Formatter):
    """
    Formatter that supports verbose mode (module and line context), a
    release prefix, and optional command output details.
    """

    def __init__(
        self,
        fmt=None,
        datefmt=None,
        style="%",
        verbose=False,
        include_command_output=False,
    ):
        if verbose:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - [%(module)s:%(lineno)d] - %(message)s"
        elif not fmt:
            fmt = "%(asctime)s - %(levelname)s - %(message)s"

        super().__init__(fmt, datefmt, style)
        self.include_command_output = include_command_output

    def format(self, record):
        result = super().format(record)

        release = getattr(record, "release", None)
        if release:
            result = f"{result} [release={release}]"

        if self.include_command_output:
            if getattr(record, "command", None):
                result += f"\nCommand: {record.command}"
            if getattr(record, "output", None):
                result += f"\nOutput: {record.output}"

        return result


def setup_main_log_file(
    output_dir: str, debug_commands: bool = False, json_format: bool = False
) -> logging.FileHandler:
    """
    Set up a file handler for the main log file.

    Args:
        output_dir: The output directory path
        debug_commands: If True, include external command output in the file
        json_format: If True, write one JSON object per line

    Returns:
        The file handler for the main log file
    """
    os.makedirs(output_dir, exist_ok=True)

    log_file = os.path.join(output_dir, "migration.log")

    file_handler = logging.FileHandler(log_file, mode="a")
    file_handler.setLevel(logging.DEBUG)  # Always use DEBUG level for file handlers

    formatter: logging.Formatter
    if json_format:
        formatter = JsonFormatter()
    else:
        formatter = EnhancedFormatter(
            "%(asctime)s - %(levelname)s - %(message)s",
            include_command_output=debug_commands,
        )
    file_handler.setFormatter(formatter)

    logger = logging.getLogger("release_migrator")
    logger.addHandler(file_handler)

    logger.info(f"Main log file created at: {log_file}")
    return file_handler


def setup_logger(
    verbose: bool = False,
    debug_commands: bool = False,
    output_dir: Optional[str] = None,
    json_format: bool = False,
) -> logging.Logger:
    """
    Set up and return the logger with appropriate formatting.

    Args:
        verbose: If True, set console handler to DEBUG level; otherwise INFO level
        debug_commands: If True, log the output of every kubectl/helm call
        output_dir: Optional output directory for the main log file
        json_format: If True, the main log file is written as JSON lines

    Returns:
        Configured logger instance
    """
    global _DEBUG_COMMANDS_ENABLED
    _DEBUG_COMMANDS_ENABLED = debug_commands

    logger = logging.getLogger("release_migrator")

    # Clear any existing handlers to prevent duplicate messages
    if logger.handlers:
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)

    logger.setLevel(logging.DEBUG)  # Always set logger to DEBUG to capture all logs

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(
        EnhancedFormatter(verbose=verbose, include_command_output=debug_commands)
    )
    logger.addHandler(console_handler)

    if output_dir:
        setup_main_log_file(output_dir, debug_commands, json_format)

    if debug_commands:
        logger.info("Command output logging enabled")

    return logger


def log_with_context(level: int, message: str, **kwargs: Any) -> None:
    """
    Log a message with additional context information.

    Args:
        level: The logging level (e.g., logging.INFO)
        message: The log message
        **kwargs: Additional context to include in the log record
    """
    # Filter out None values from kwargs
    extras = {k: v for k, v in kwargs.items() if v is not None}

    logger = logging.getLogger("release_migrator")
    logger.log(level, message, extra=extras)


def log_command(
    args: List[str], output: Optional[str] = None, **kwargs: Any
) -> None:
    """
    Log an external command and, in debug mode, its output.

    Args:
        args: The argument vector that was executed
        output: Combined stdout/stderr of the command
        **kwargs: Additional context to include in the log record
    """
    log_context = kwargs.copy()
    log_context["command"] = " ".join(args)

    if output and is_debug_commands_enabled():
        if len(output) > 2000:
            output = output[:2000] + "... [truncated]"
        log_context["output"] = output

    log_with_context(logging.DEBUG, f"Ran command: {args[0]}", **log_context)


def is_debug_commands_enabled() -> bool:
    """Check if command output logging is enabled."""
    return _DEBUG_COMMANDS_ENABLED


def get_logger():
    """Get the release_migrator logger, creating it with defaults if needed."""
    migrator_logger = logging.getLogger("release_migrator")
    if not migrator_logger.handlers:
        migrator_logger.setLevel(logging.INFO)
        handler = logging.StreamHandler()
        handler.setLevel(logging.INFO)
        handler.setFormatter(EnhancedFormatter())
        migrator_logger.addHandler(handler)
    return migrator_logger


# Module logger - will be properly initialized when setup_logger is called
logger = get_logger()
