import logging

from rich.logging import RichHandler

from utils import config


class CenteredFormatter(logging.Formatter):
    longest_name_length = 14  # grows with the longest logger name seen

    def __init__(self, fmt=None, datefmt=None, style="%", initial_width=14):
        super().__init__(fmt, datefmt, style)
        CenteredFormatter.longest_name_length = initial_width

    def format(self, record):
        CenteredFormatter.longest_name_length = max(
            CenteredFormatter.longest_name_length, len(record.name)
        )
        width = CenteredFormatter.longest_name_length
        # copy so other handlers still see the bare name
        record = logging.makeLogRecord(record.__dict__)
        record.name = record.name.center(width)
        return super().format(record)


def get_logger(name=None) -> logging.Logger:
    """
    Return a logger that prints through RichHandler.

    The Textual screen owns the terminal while the app runs, so when
    ETAAS_LOG_FILE is set records are also appended to that file.
    """
    logger = logging.getLogger(name or "etaas")
    log_level = logging.DEBUG if config.DEBUG else logging.INFO
    logger.setLevel(log_level)

    if not logger.handlers:
        formatter = CenteredFormatter("[%(name)s]  %(message)s")

        console_handler = RichHandler(
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        console_handler.setFormatter(formatter)
        console_handler.setLevel(log_level)
        logger.addHandler(console_handler)

        if config.LOG_FILE:
            file_handler = logging.FileHandler(config.LOG_FILE, encoding="utf-8")
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s")
            )
            file_handler.setLevel(log_level)
            logger.addHandler(file_handler)

        logger.propagate = False
        logger.debug(f"Logger '{logger.name}' ready.")

    return logger
