import logging
from logging import handlers
import os
import traceback
from typing import Optional, Union, Dict, Any

DEFAULT_LOG_FILE = "ogg_coverart.log"
DEFAULT_LOG_DIR = "logs"


class ErrorHandler:
    """
    Logs errors and progress of a cover art run to a rotating log file.
    """
    def __init__(
        self,
        log_file: str = DEFAULT_LOG_FILE,
        log_dir: str = DEFAULT_LOG_DIR,
        log_level: int = logging.INFO,
        format_string: Optional[str] = None,
        max_file_size: int = 1024 * 1024,  # 1MB default
        backup_count: int = 3
    ):
        """
        Initialize the error handler.

        Args:
            log_file (str): Name of the log file
            log_dir (str): Directory to store log files
            log_level (int): Logging level (default: logging.INFO)
            format_string (str, optional): Custom format string for log messages
            max_file_size (int): Maximum size of log file before rotation in bytes
            backup_count (int): Number of backup files to keep
        """
        self.log_file = log_file
        self.log_dir = log_dir

        os.makedirs(log_dir, exist_ok=True)
        self.log_path = os.path.join(log_dir, log_file)

        self.logger = logging.getLogger('OggCoverArt')
        # Drop handlers of a previous instance so messages are not written twice
        for handler in self.logger.handlers:
            handler.close()
        self.logger.handlers = []
        self.logger.setLevel(log_level)
        self.logger.propagate = False

        if format_string is None:
            format_string = '[%(asctime)s] %(levelname)s: %(message)s'

        file_handler = handlers.RotatingFileHandler(
            self.log_path,
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(logging.Formatter(format_string))
        self.logger.addHandler(file_handler)

    @staticmethod
    def _with_context(message: str, context: Optional[Dict[str, Any]]) -> str:
        if not context:
            return message
        context_str = '\n'.join(f"{k}: {v}" for k, v in context.items())
        return f"{message}\nContext:\n{context_str}"

    def log_error(
        self,
        error: Union[Exception, str],
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log an error with optional context information.

        Args:
            error: The error to log (can be an Exception or string)
            context: Optional dictionary of contextual information
        """
        log_parts = [f"Error: {error}"]

        if isinstance(error, Exception) and error.__traceback__ is not None:
            error_traceback = ''.join(traceback.format_tb(error.__traceback__))
            log_parts.append(f"Traceback:\n{error_traceback}")

        self.logger.error(self._with_context('\n'.join(log_parts), context))

    def log_info(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self.logger.info(self._with_context(message, context))

    def log_warning(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self.logger.warning(self._with_context(message, context))

    def get_logs(self, n_lines: int = 100) -> list[str]:
        """
        Retrieve the last n lines from the log file.

        Args:
            n_lines: Number of lines to retrieve

        Returns:
            List of log lines
        """
        for handler in self.logger.handlers:
            handler.flush()
        try:
            with open(self.log_path, 'r', encoding='utf-8') as f:
                return f.readlines()[-n_lines:]
        except FileNotFoundError:
            return []


# Created on first use, importing the package never touches the filesystem
_default_handler: Optional[ErrorHandler] = None


def configure(**kwargs) -> ErrorHandler:
    """Replace the default handler, e.g. to log into another directory."""
    global _default_handler
    _default_handler = ErrorHandler(**kwargs)
    return _default_handler


def get_handler() -> ErrorHandler:
    if _default_handler is None:
        return configure()
    return _default_handler


def log_error(error: Union[Exception, str], context: Optional[Dict[str, Any]] = None) -> None:
    """Log an error with optional context information."""
    get_handler().log_error(error, context=context)

def log_info(message: str, context: Optional[Dict[str, Any]] = None) -> None:
    get_handler().log_info(message, context=context)

def log_warning(message: str, context: Optional[Dict[str, Any]] = None) -> None:
    get_handler().log_warning(message, context=context)

def get_logs(n_lines: int = 100) -> list[str]:
    return get_handler().get_logs(n_lines)
