from dataclasses import dataclass
from pathlib import Path

from feed_batcher.settings.env_settings import EnvSettings
from feed_batcher.settings.ini_settings import CONFIG_PATH, IniSettings
from feed_batcher.settings.logging import logger
from feed_batcher.utils.errors import SettingsError


@dataclass(frozen=True)
class AppSettings:
    """
    Главный класс настроек приложения.

    Объединяет настройки из различных источников:
    - переменные окружения (EnvSettings);
    - INI-файлы конфигурации (IniSettings).
    """

    env: EnvSettings
    ini: IniSettings


def load_settings(path: Path = CONFIG_PATH) -> AppSettings:
    """
    Загружает и валидирует все настройки приложения.

    :param path: Путь к INI-файлу.
    :return: Экземпляр AppSettings с валидированными настройками.
    :raises SettingsError: Если произошла ошибка при загрузке
                           или валидации настроек.
    """
    try:
        env = EnvSettings.load()
        ini = IniSettings.load(path)
    except SettingsError as e:
        logger.error("Ошибка при загрузке настроек программы: %s", e)
        raise
    return AppSettings(env=env, ini=ini)
