import json

from sqlalchemy.engine import Engine

from feed_batcher.db.connection import session_scope
from feed_batcher.db.models import BatchPayload
from feed_batcher.settings.logging import logger


class PostgresSink:
    """
    Sink, сохраняющий каждый батч отдельной строкой в таблицу batch_payload.

    Каждый вызов — отдельная транзакция. Ошибки БД не перехватываются:
    они уходят в аккумулятор и дальше вызывающему коду.

    :param engine: SQLAlchemy Engine (таблица должна быть создана init_db).
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def call(self, payload: bytes) -> None:
        """
        Сохраняет батч.

        :param payload: UTF-8 JSON-массив записей.
        :return: None.
        """
        text = payload.decode("utf-8")
        record_count = len(json.loads(text))

        with session_scope(self.engine) as session:
            row = BatchPayload(
                record_count=record_count,
                size_bytes=len(payload),
                payload=text,
            )
            session.add(row)
            session.flush()
            batch_id = row.id

        logger.debug(
            "Batch #%s сохранён: records=%s bytes=%s",
            batch_id,
            record_count,
            len(payload),
        )
