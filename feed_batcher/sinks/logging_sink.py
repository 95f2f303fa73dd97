from feed_batcher.pipeline.sizing import ONE_MEGABYTE
from feed_batcher.settings.logging import logger


class LoggingSink:
    """
    Заглушка внешнего сервиса: только пишет в лог размер полученного батча.

    Используется по умолчанию, когда реальной отправки не требуется.
    """

    def __init__(self) -> None:
        self.calls = 0
        self.bytes_received = 0

    def call(self, payload: bytes) -> None:
        """
        Принимает сериализованный батч.

        :param payload: UTF-8 JSON-массив записей.
        :return: None.
        """
        self.calls += 1
        self.bytes_received += len(payload)
        logger.debug(
            "External service call #%s: %.4fMB",
            self.calls,
            len(payload) / ONE_MEGABYTE,
        )
