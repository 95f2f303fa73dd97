import logging
import os

import colorlog

LOG_FORMAT = (
    "%(log_color)s%(asctime)s [%(levelname)s] "
    "%(module)s (%(funcName)s:%(lineno)d): %(message)s"
)
LOG_LEVEL = os.getenv("FEED_BATCHER_LOG_LEVEL", "INFO").upper()


def build_handler() -> logging.Handler:
    """
    Создаёт цветной stream-handler для консольного вывода.

    :return: Настроенный colorlog.StreamHandler.
    """
    stream_handler = colorlog.StreamHandler()
    stream_handler.setFormatter(
        colorlog.ColoredFormatter(
            LOG_FORMAT,
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            },
        )
    )
    return stream_handler


logger = logging.getLogger("feed_batcher")
# повторный импорт (например, под pytest) не должен дублировать вывод
if not logger.handlers:
    logger.addHandler(build_handler())
logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
