from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker


def get_engine(db_url: str) -> Engine:
    """
    Создаёт SQLAlchemy Engine.

    :param db_url: Строка подключения (например, postgresql+psycopg://...).
    :return: Engine для работы с БД.
    """
    return create_engine(
        db_url,
        pool_pre_ping=True,
        future=True,
    )


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    """
    Контекст-менеджер для работы с ORM-сессией (transaction scope).

    :param engine: SQLAlchemy Engine.
    :yield: Session (ORM).
    """
    session = sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
        future=True,
    )()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
