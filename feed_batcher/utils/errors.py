class SettingsError(RuntimeError):
    """Ошибка загрузки или валидации настроек приложения."""


class FeedError(RuntimeError):
    """Фид не найден или не может быть прочитан."""
