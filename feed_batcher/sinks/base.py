from typing import Protocol, runtime_checkable


@runtime_checkable
class BatchSink(Protocol):
    """
    Внешний получатель готовых батчей.

    Получает сериализованный батч (UTF-8 JSON-массив) и выполняет побочный
    эффект: отправку, запись и т.п. Вызывается синхронно; исключения sink
    не перехватываются и уходят вызывающему коду.
    """

    def call(self, payload: bytes) -> None: ...
