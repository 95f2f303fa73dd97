from sqlalchemy import delete
from sqlalchemy.engine import Engine

from feed_batcher.db.models import Base, BatchPayload


def init_db(engine: Engine) -> None:
    """
    Создаёт таблицы проекта, если их ещё нет.

    :param engine: SQLAlchemy Engine.
    :return: None.
    """
    Base.metadata.create_all(engine)


def truncate_payloads(engine: Engine) -> None:
    """
    Очищает таблицу batch_payload перед новым прогоном.

    :param engine: SQLAlchemy Engine.
    :return: None.
    """
    with engine.begin() as conn:
        conn.execute(delete(BatchPayload))
