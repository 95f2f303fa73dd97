from sqlalchemy import BigInteger, Integer, MetaData, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Configuring Constraint Naming Conventions (SQLAlchemy 2.0 Documentation)
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """
    Базовый класс для всех ORM-моделей проекта.

    Содержит общий объект MetaData с настроенными naming convention.
    """

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class BatchPayload(Base):
    """
    ORM-модель таблицы batch_payload.

    Одна строка — один отправленный батч в том виде, в каком его получил sink.

    :param id: Порядковый номер батча (автоинкремент).
    :param record_count: Количество записей в батче.
    :param size_bytes: Размер сериализованного батча в байтах.
    :param payload: JSON-массив записей (UTF-8 текст).
    """

    __tablename__ = "batch_payload"

    # sqlite autoincrement работает только для INTEGER PRIMARY KEY
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    record_count: Mapped[int] = mapped_column(Integer, nullable=False)
    size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
