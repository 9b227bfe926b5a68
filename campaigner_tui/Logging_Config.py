# Logging_Config.py
# Description: Logging setup for the Textual host (loguru bridge, dev console, in-app log pane, rotating file)
#
# Imports
import asyncio
import logging
import logging.handlers
import sys
#
# 3rd-Party Imports
from loguru import logger as loguru_logger
from textual.css.query import QueryError
from textual.logging import TextualHandler
from textual.widgets import RichLog
#
# Local Imports
from .config import get_cli_log_file_path, get_cli_setting
#
########################################################################################################################
#
# Functions:

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s:%(lineno)d - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOGURU_TO_STD_LEVELS = {
    "TRACE": logging.DEBUG, "DEBUG": logging.DEBUG, "INFO": logging.INFO,
    "SUCCESS": logging.INFO, "WARNING": logging.WARNING, "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL, "METRIC": logging.DEBUG,
}

# Noisy third-party loggers
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")


class RichLogHandler(logging.Handler):
    """Queues formatted records and writes them into the #app-log-display RichLog from the event loop."""

    def __init__(self, rich_log_widget: RichLog):
        super().__init__()
        self.rich_log_widget = rich_log_widget
        self.log_queue: asyncio.Queue = asyncio.Queue()
        self.setFormatter(logging.Formatter(
            "{asctime} [{levelname:<8}] {name}:{lineno:<4} : {message}",
            style="{", datefmt=LOG_DATE_FORMAT
        ))
        self._queue_processor_task = None

    def start_processor(self) -> None:
        if self._queue_processor_task and not self._queue_processor_task.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            logging.error(f"Failed to get running loop to start log processor: {e}")
            return
        self._queue_processor_task = loop.create_task(self._process_log_queue(), name="RichLogProcessor")
        logging.debug("RichLog queue processor task started.")

    async def stop_processor(self) -> None:
        if self._queue_processor_task and not self._queue_processor_task.done():
            self._queue_processor_task.cancel()
            try:
                await self._queue_processor_task
            except asyncio.CancelledError:
                logging.debug("RichLog queue processor task cancelled.")
        self._queue_processor_task = None

    async def _process_log_queue(self) -> None:
        while True:
            message = await self.log_queue.get()
            try:
                if self.rich_log_widget.is_mounted:
                    self.rich_log_widget.write(message)
            except Exception as e:
                loguru_logger.critical(f"RichLog processor failed to write a record: {e}")
            finally:
                self.log_queue.task_done()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            app = self.rich_log_widget.app
            # Records may come from worker threads, so hand them to the loop thread-safely.
            app._loop.call_soon_threadsafe(self.log_queue.put_nowait, message)
        except Exception:
            self.handleError(record)


def _sink_to_standard_logging(message) -> None:
    record = message.record
    std_level = LOGURU_TO_STD_LEVELS.get(record["level"].name, logging.INFO)
    std_logger = logging.getLogger(record["name"])
    if record["exception"]:
        std_logger.log(std_level, record["message"], exc_info=record["exception"])
    else:
        std_logger.log(std_level, record["message"])


def forward_loguru_to_standard_logging() -> None:
    """Routes loguru (config, metrics) through the standard logging handlers."""
    loguru_logger.remove()
    loguru_logger.add(_sink_to_standard_logging, format="{message}", level="TRACE")


def _level_from_name(name: str, default: int) -> int:
    return getattr(logging, str(name).upper(), default)


def _add_file_handler(root_logger: logging.Logger) -> None:
    log_file_path = get_cli_log_file_path()
    if any(isinstance(h, logging.handlers.RotatingFileHandler) and h.baseFilename == str(log_file_path)
           for h in root_logger.handlers):
        logging.info("Standard Logging: RotatingFileHandler already exists for this file path.")
        return
    file_handler = logging.handlers.RotatingFileHandler(
        log_file_path,
        maxBytes=int(get_cli_setting("logging", "log_max_bytes", 10485760)),
        backupCount=int(get_cli_setting("logging", "log_backup_count", 5)),
        encoding="utf-8",
    )
    file_handler.setLevel(_level_from_name(get_cli_setting("logging", "file_log_level", "INFO"), logging.INFO))
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root_logger.addHandler(file_handler)
    logging.info(f"Standard Logging: Added RotatingFileHandler (File: '{log_file_path}', "
                 f"Level: {logging.getLevelName(file_handler.level)}).")


def configure_application_logging(app_instance) -> None:
    """Sets up all logging handlers for a running CampaignerApp."""
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    try:
        forward_loguru_to_standard_logging()
    except ValueError as e:
        logging.error(f"Loguru: Error during reconfiguration: {e}", exc_info=True)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    general_level = _level_from_name(app_instance.app_config.get("general", {}).get("log_level", "INFO"),
                                     logging.INFO)
    root_logger.setLevel(general_level)

    textual_handler = TextualHandler()
    textual_handler.setLevel(general_level)
    textual_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root_logger.addHandler(textual_handler)

    try:
        log_display_widget = app_instance.query_one("#app-log-display", RichLog)
        if app_instance._rich_log_handler is None:
            app_instance._rich_log_handler = RichLogHandler(log_display_widget)
        rich_level = app_instance.app_config.get("logging", {}).get("rich_log_level", "DEBUG")
        app_instance._rich_log_handler.setLevel(_level_from_name(rich_level, logging.DEBUG))
        root_logger.addHandler(app_instance._rich_log_handler)
        app_instance._rich_log_handler.start_processor()
    except QueryError:
        logging.error("Failed to find #app-log-display widget for RichLogHandler setup.")
        app_instance._rich_log_handler = None

    try:
        _add_file_handler(root_logger)
    except OSError as e:
        print(f"WARNING: could not set up file logging: {e}", file=sys.stderr)

    # Let the most verbose handler actually receive its records.
    handler_levels = [h.level for h in root_logger.handlers if h.level > 0]
    if handler_levels and root_logger.level > min(handler_levels):
        root_logger.setLevel(min(handler_levels))
    logging.info(f"Logging setup complete. Root level: {logging.getLevelName(root_logger.level)}")

#
# End of Logging_Config.py
########################################################################################################################
