import configparser
import os
from dataclasses import dataclass
from pathlib import Path

from feed_batcher.utils.errors import SettingsError

CONFIG_PATH = Path(
    os.getenv(
        "FEED_BATCHER_CONFIG",
        Path(__file__).resolve().parent.parent.parent / "config.ini",
    )
)

SINK_KINDS = ("log", "memory", "postgres")


@dataclass(frozen=True)
class IniSettings:
    """
    Класс для загрузки и валидации настроек из INI-файла.

    Отвечает за:
    - проверку существования конфигурационного файла;
    - чтение INI-файла;
    - валидацию обязательных секций и ключей;
    - предоставление настроек в виде неизменяемого объекта.

    При ошибках конфигурации выбрасывает SettingsError.
    """

    feed_path: str
    item_tag: str
    lxml_recover: bool
    lxml_huge_tree: bool
    max_size_mb: float
    sink_kind: str
    progress_every: int

    # имя_поля_в_классе -> (секция, ключ)
    _MAP = {
        "feed_path": ("FEED", "path"),
        "item_tag": ("FEED", "item_tag"),
        "lxml_recover": ("FEED", "lxml_recover"),
        "lxml_huge_tree": ("FEED", "lxml_huge_tree"),
        "max_size_mb": ("BATCH", "max_size_mb"),
        "sink_kind": ("SINK", "kind"),
        "progress_every": ("LOG", "progress_every"),
    }

    @classmethod
    def load(cls, path: Path = CONFIG_PATH) -> "IniSettings":
        """
        Загружает и валидирует настройки из INI-файла.

        :param path: Путь к INI-файлу конфигурации.
        :return: Экземпляр IniSettings с загруженными настройками.
        :raises SettingsError: Если файл не найден, не прочитан или с ошибками.
        """
        if not path.exists():
            raise SettingsError(f"INI файл не найден: {path}")

        parser = configparser.ConfigParser()
        if not parser.read(path, encoding="utf-8"):
            raise SettingsError(f"Не удалось прочитать INI файл: {path}")

        raw_data = {
            field: cls._required(parser, sec, key, path)
            for field, (sec, key) in cls._MAP.items()
        }
        data = cls._cast_types(raw_data)
        cls._validate(data)
        return cls(**data)

    @staticmethod
    def _required(
        parser: configparser.ConfigParser, section: str, key: str, path: Path
    ) -> str:
        """
        Возвращает обязательный параметр из указанной секции INI-файла.

        :param parser: Экземпляр ConfigParser с загруженным INI-файлом.
        :param section: Имя секции INI-файла.
        :param key: Имя параметра в секции.
        :param path: Путь к файлу (для сообщений об ошибках).
        :return: Значение параметра в виде строки.
        :raises SettingsError: Если секция, ключ отсутствуют или значение пустое.
        """
        if not parser.has_section(section):
            raise SettingsError(f"Секция [{section}] отсутствует в {path.name}")

        if not parser.has_option(section, key):
            raise SettingsError(
                f"Ключ '{key}' отсутствует в секции [{section}] ({path.name})"
            )

        value = parser.get(section, key)
        if not value.strip():
            raise SettingsError(
                f"Ключ '{key}' в секции [{section}] пустой ({path.name})"
            )

        return value

    @classmethod
    def _cast_types(cls, raw: dict[str, str]) -> dict[str, object]:
        """Приводит строковые значения из INI к типам, указанным в аннотациях IniSettings."""
        result: dict[str, object] = {}

        for field, value in raw.items():
            target_type = cls.__annotations__[field]

            try:
                if target_type is bool:
                    result[field] = value.lower() in {"1", "true", "yes", "on"}
                elif target_type is int:
                    result[field] = int(value)
                elif target_type is float:
                    result[field] = float(value)
                else:
                    result[field] = value.strip()
            except ValueError as e:
                raise SettingsError(
                    f"Некорректное значение для '{field}': {value}"
                ) from e

        return result

    @staticmethod
    def _validate(data: dict[str, object]) -> None:
        """
        Проверяет значения, которые нельзя проверить приведением типа.

        :param data: Уже приведённые значения.
        :raises SettingsError: Если лимит батча не положительный
                               или тип sink неизвестен.
        """
        if data["max_size_mb"] <= 0:
            raise SettingsError(
                f"max_size_mb должен быть > 0, получено: {data['max_size_mb']}"
            )
        if data["sink_kind"] not in SINK_KINDS:
            raise SettingsError(
                f"Неизвестный sink '{data['sink_kind']}', "
                f"допустимо: {', '.join(SINK_KINDS)}"
            )
