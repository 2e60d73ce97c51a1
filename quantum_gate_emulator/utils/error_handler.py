"""
Error handling and logging utilities for the Quantum Gate Emulator.

This module defines the fatal error taxonomy of a gate application run
(input, precondition, allocation, transfer, dispatch and release failures),
and a centralized handler that configures logging and keeps a history of
reported errors so operators can tell a setup failure from a leak risk.
"""

import logging
import sys
import os
import json
import datetime
import traceback
import threading
import inspect
from contextlib import contextmanager
from typing import Dict, List, Any, Optional, Type, Iterator
from enum import Enum, auto
from functools import wraps

from ..constants import EXIT_CODES, EXIT_FAILURE

# Configure base logger
logger = logging.getLogger("QuantumGateEmulator")

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class ErrorLevel(Enum):
    """Error severity levels."""
    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()


class ErrorCategory(Enum):
    """Categories of errors, one per failing step of a run."""
    INPUT = auto()
    PRECONDITION = auto()
    ALLOCATION = auto()
    TRANSFER = auto()
    DISPATCH = auto()
    RELEASE = auto()
    CONFIGURATION = auto()
    OUTPUT = auto()
    UNKNOWN = auto()


class GateEmulatorError(Exception):
    """
    Base class for fatal emulator errors.

    Every subclass maps to one ErrorCategory and one process exit status.
    """

    category = ErrorCategory.UNKNOWN

    def __init__(self, message: str, step: Optional[str] = None):
        super().__init__(message)
        self.step = step

    @property
    def exit_code(self) -> int:
        return EXIT_CODES.get(self.category.name, EXIT_FAILURE)


class InputUnavailable(GateEmulatorError):
    """The input source is missing, unreadable or malformed."""
    category = ErrorCategory.INPUT


class PreconditionViolation(GateEmulatorError):
    """The gate job breaks a structural precondition (vector length, target bit)."""
    category = ErrorCategory.PRECONDITION


class ResourceExhaustion(GateEmulatorError):
    """Accelerator memory could not be allocated."""
    category = ErrorCategory.ALLOCATION


class TransferFailure(GateEmulatorError):
    """Host/accelerator data movement failed."""
    category = ErrorCategory.TRANSFER


class DispatchFailure(GateEmulatorError):
    """The parallel transform failed to launch or to complete."""
    category = ErrorCategory.DISPATCH


class ReleaseFailure(GateEmulatorError):
    """Accelerator memory could not be released."""
    category = ErrorCategory.RELEASE


class ConfigurationError(GateEmulatorError):
    """Configuration file or command-line settings are invalid."""
    category = ErrorCategory.CONFIGURATION


class OutputUnavailable(GateEmulatorError):
    """The output vector could not be written."""
    category = ErrorCategory.OUTPUT


class ErrorHandler:
    """
    Centralized error handling and logging for the Quantum Gate Emulator.

    This class configures the emulator's logger hierarchy, records every
    reported error with its category and caller, and exports JSON reports.
    """

    def __init__(self,
                 log_file: Optional[str] = None,
                 console_level: int = logging.INFO,
                 file_level: int = logging.DEBUG,
                 report_errors: bool = True,
                 max_error_history: int = 100):
        """
        Initialize the error handler.

        Args:
            log_file: Path to log file (None for no file logging)
            console_level: Logging level for console output
            file_level: Logging level for file output
            report_errors: Whether to collect error reports
            max_error_history: Maximum number of errors to keep in history
        """
        self.log_file = log_file
        self.console_level = console_level
        self.file_level = file_level
        self.report_errors = report_errors
        self.max_error_history = max_error_history

        # Error history
        self.error_history = []
        self.error_history_lock = threading.Lock()

        self._configure_logging()

        logger.debug("Error handler initialized")

    def _configure_logging(self) -> None:
        """Configure logging system."""
        logger.handlers = []
        logger.setLevel(logging.DEBUG)
        logger.propagate = False

        # Console output goes to stderr; stdout carries the output vector
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(self.console_level)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(console_handler)

        if self.log_file:
            self._add_file_handler(self.log_file)

    def _add_file_handler(self, log_file: str) -> None:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(self.file_level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    def handle_error(self,
                     exception: Optional[BaseException] = None,
                     message: Optional[str] = None,
                     level: ErrorLevel = ErrorLevel.ERROR,
                     category: ErrorCategory = ErrorCategory.UNKNOWN,
                     context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Handle an error.

        Args:
            exception: Exception object
            message: Error message
            level: Error severity level
            category: Error category
            context: Additional context

        Returns:
            Error information dictionary
        """
        if message is None:
            message = str(exception) if exception else "Unknown error"

        error_info = {
            "timestamp": datetime.datetime.now().isoformat(),
            "level": level.name,
            "category": category.name,
            "message": message,
            "step": getattr(exception, "step", None),
            "exception_type": exception.__class__.__name__ if exception else None,
            "exception_args": [str(arg) for arg in exception.args] if exception else None,
            "traceback": "".join(traceback.format_exception(
                type(exception), exception, exception.__traceback__)) if exception else None,
            "context": context or {},
            "caller": self._get_caller_info()
        }

        log_level = getattr(logging, level.name)
        logger.log(log_level, f"{message} ({category.name})")

        if exception is not None and log_level >= logging.ERROR:
            cause = exception.__cause__
            if cause is not None:
                logger.log(log_level, f"Caused by {cause.__class__.__name__}: {cause}")
            logger.debug(f"Traceback: {error_info['traceback']}")

        if self.report_errors:
            with self.error_history_lock:
                self.error_history.append(error_info)
                if len(self.error_history) > self.max_error_history:
                    self.error_history = self.error_history[-self.max_error_history:]

        return error_info

    def _get_caller_info(self) -> Dict[str, Any]:
        """
        Get information about the first caller outside this module.

        Returns:
            Dictionary with caller information
        """
        caller_info = {
            "file": None,
            "function": None,
            "line": None,
            "module": None
        }

        frame = inspect.currentframe()
        while frame:
            frame_info = inspect.getframeinfo(frame)
            if not frame_info.filename.endswith("error_handler.py"):
                module = inspect.getmodule(frame)
                caller_info["file"] = frame_info.filename
                caller_info["function"] = frame_info.function
                caller_info["line"] = frame_info.lineno
                caller_info["module"] = module.__name__ if module else None
                break
            frame = frame.f_back

        return caller_info

    def clear_error_history(self) -> None:
        """Clear the error history."""
        with self.error_history_lock:
            self.error_history = []

    def get_error_history(self,
                          level: Optional[ErrorLevel] = None,
                          category: Optional[ErrorCategory] = None,
                          max_errors: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Get error history, optionally filtered.

        Args:
            level: Filter by error level
            category: Filter by error category
            max_errors: Maximum number of errors to return (most recent)

        Returns:
            List of error dictionaries
        """
        with self.error_history_lock:
            errors = self.error_history.copy()

        if level:
            errors = [e for e in errors if e["level"] == level.name]
        if category:
            errors = [e for e in errors if e["category"] == category.name]
        if max_errors and max_errors < len(errors):
            errors = errors[-max_errors:]

        return errors

    def get_error_summary(self) -> Dict[str, Any]:
        """
        Get a summary of errors by category, level and exception type.

        Returns:
            Dictionary with error summary
        """
        with self.error_history_lock:
            errors = self.error_history.copy()

        categories = {}
        levels = {}
        exceptions = {}
        for e in errors:
            categories[e["category"]] = categories.get(e["category"], 0) + 1
            levels[e["level"]] = levels.get(e["level"], 0) + 1
            exception_type = e.get("exception_type")
            if exception_type:
                exceptions[exception_type] = exceptions.get(exception_type, 0) + 1

        return {
            "total": len(errors),
            "by_category": categories,
            "by_level": levels,
            "by_exception": exceptions,
            "latest": errors[-1] if errors else None
        }

    def export_error_report(self, filename: str) -> None:
        """
        Export error history to a JSON file.

        Args:
            filename: Output filename
        """
        directory = os.path.dirname(filename)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with self.error_history_lock:
            errors = self.error_history.copy()

        report = {
            "timestamp": datetime.datetime.now().isoformat(),
            "summary": self.get_error_summary(),
            "errors": errors
        }

        with open(filename, 'w') as f:
            json.dump(report, f, indent=2, default=str)

        logger.info(f"Exported error report to {filename}")

    def set_log_levels(self, console_level: int, file_level: Optional[int] = None) -> None:
        """
        Set logging levels.

        Args:
            console_level: Logging level for console output
            file_level: Logging level for file output (None to keep current)
        """
        self.console_level = console_level
        if file_level is not None:
            self.file_level = file_level

        for handler in logger.handlers:
            if isinstance(handler, logging.FileHandler):
                handler.setLevel(self.file_level)
            elif isinstance(handler, logging.StreamHandler):
                handler.setLevel(console_level)

    def set_log_file(self, log_file: Optional[str]) -> None:
        """
        Set log file.

        Args:
            log_file: Path to log file (None to disable file logging)
        """
        for handler in list(logger.handlers):
            if isinstance(handler, logging.FileHandler):
                logger.removeHandler(handler)
                handler.close()

        self.log_file = log_file

        if log_file:
            self._add_file_handler(log_file)
            logger.debug(f"Set log file to {log_file}")

    def log_exception(self, exception: BaseException,
                      message: Optional[str] = None,
                      category: Optional[ErrorCategory] = None,
                      context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Log an exception at ERROR level.

        The category defaults to the exception's own category for emulator
        errors and to UNKNOWN for anything else.
        """
        if category is None:
            category = getattr(exception, "category", ErrorCategory.UNKNOWN)
        return self.handle_error(
            exception=exception,
            message=message,
            level=ErrorLevel.ERROR,
            category=category,
            context=context
        )

    def log_warning(self, message: str,
                    category: ErrorCategory = ErrorCategory.UNKNOWN,
                    context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Log a warning message."""
        return self.handle_error(
            message=message,
            level=ErrorLevel.WARNING,
            category=category,
            context=context
        )


# Global error handler instance
error_handler = ErrorHandler()


@contextmanager
def fatal_step(step: str, error_type: Type[GateEmulatorError],
               context: Optional[Dict[str, Any]] = None) -> Iterator[None]:
    """
    Error boundary for one step of a run.

    Any exception escaping the block is re-raised as ``error_type`` with a
    diagnostic naming the step; emulator errors pass through untouched.

    Args:
        step: Human-readable step name (e.g. 'allocate input buffer')
        error_type: GateEmulatorError subclass to raise
        context: Additional context recorded with the error
    """
    try:
        yield
    except GateEmulatorError:
        raise
    except Exception as e:
        error = error_type(f"{step} failed: {e}", step=step)
        error_handler.handle_error(
            exception=error,
            level=ErrorLevel.DEBUG,
            category=error_type.category,
            context=dict(context or {}, cause=repr(e))
        )
        raise error from e


def error_boundary(category: ErrorCategory = ErrorCategory.UNKNOWN,
                   error_type: Type[GateEmulatorError] = GateEmulatorError):
    """
    Decorator for converting exceptions into fatal emulator errors.

    Args:
        category: Error category recorded for the failure
        error_type: GateEmulatorError subclass raised in place of the original

    Returns:
        Decorator function
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except GateEmulatorError:
                raise
            except Exception as e:
                error_handler.handle_error(
                    exception=e,
                    message=f"Error in {func.__name__}: {e}",
                    level=ErrorLevel.DEBUG,
                    category=category,
                    context={"function": func.__name__, "module": func.__module__}
                )
                raise error_type(f"{func.__name__} failed: {e}", step=func.__name__) from e

        return wrapper
    return decorator
