import os
from dataclasses import dataclass
from typing import Optional

from feed_batcher.utils.errors import SettingsError


@dataclass(frozen=True)
class EnvSettings:
    """
    Класс для загрузки и валидации настроек из переменных окружения.

    Переменные POSTGRES_* нужны только для sink "postgres". Если
    POSTGRES_HOST не задан, db_url остаётся None; если задан —
    остальные переменные обязательны.
    """

    db_url: Optional[str]

    @classmethod
    def load(cls) -> "EnvSettings":
        """
        Загружает и валидирует настройки из переменных окружения.

        :return: Экземпляр EnvSettings.
        :raises SettingsError: Если POSTGRES_HOST задан, а остальные
                               переменные отсутствуют или некорректны.
        """
        host = os.getenv("POSTGRES_HOST")
        if host is None or host.strip() == "":
            return cls(db_url=None)

        port = cls._int("POSTGRES_PORT", default=5432)
        db = cls._required("POSTGRES_DB")
        user = cls._required("POSTGRES_USER")
        password = cls._required("POSTGRES_PASSWORD")

        db_url = f"postgresql+psycopg://{user}:{password}@{host}:{port}/{db}"
        return cls(db_url=db_url)

    @staticmethod
    def _required(name: str) -> str:
        """
        Возвращает обязательную переменную окружения.

        :param name: Имя переменной окружения.
        :return: Значение переменной окружения в виде строки.
        :raises SettingsError: Если переменная окружения отсутствует или пуста.
        """
        value = os.getenv(name)
        if value is None or value.strip() == "":
            raise SettingsError(
                f"ENV {name} не задан. Проверь .env / переменные окружения."
            )
        return value

    @staticmethod
    def _int(name: str, default: int | None = None) -> int:
        """
        Возвращает целочисленную переменную окружения.

        :param name: Имя переменной окружения.
        :param default: Значение по умолчанию, если переменная не задана.
        :return: Значение переменной окружения в виде целого числа.
        :raises SettingsError: Если значение отсутствует и default не задан,
                               либо если значение невозможно привести к int.
        """
        value = os.getenv(name)
        if value is None or value.strip() == "":
            if default is None:
                raise SettingsError(f"ENV {name} не задан и не имеет default.")
            return default
        try:
            return int(value)
        except ValueError:
            raise SettingsError(f"ENV {name} должен быть числом, получено: {value!r}")
