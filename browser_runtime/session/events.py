"""События жизненного цикла сессии браузера.

События только уведомляют наблюдателей: описанное в них изменение состояния
SessionManager уже произошло синхронно к моменту отправки.
"""

from bubus import BaseEvent


class BrowserLaunchedEvent(BaseEvent):
	"""Браузер запущен и готов."""

	executable_path: str
	strategy: str


class BrowserDisconnectedEvent(BaseEvent):
	"""Браузер отключился, контекст и страница сброшены."""

	pass


class PageCreatedEvent(BaseEvent):
	"""Создана новая активная страница."""

	relaunched: bool = False


class PageClosedEvent(BaseEvent):
	"""Активная страница закрыта и будет пересоздана при следующем запросе."""

	pass


class SessionReleasedEvent(BaseEvent):
	"""Сессия освобождена через release()."""

	had_browser: bool = False
