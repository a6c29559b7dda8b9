"""Исключения для всех компонентов рантайма браузера."""


# Базовое исключение
class BrowserRuntimeError(Exception):
	"""Базовое исключение для ошибок рантайма браузера."""

	pass


# Разрешение движка автоматизации
class ResolutionError(BrowserRuntimeError):
	"""Исключение, возникающее, когда все стратегии получения playwright исчерпаны."""

	def __init__(self, message: str, cause: BaseException | None = None):
		super().__init__(message)
		self.message = message
		self.cause = cause


class LaunchError(BrowserRuntimeError):
	"""Движок получен, но запуск браузера завершился ошибкой."""

	def __init__(
		self,
		message: str,
		executable_path: str | None = None,
		cause: BaseException | None = None,
	):
		super().__init__(message)
		self.message = message
		self.executable_path = executable_path
		self.cause = cause


class PageCreationError(BrowserRuntimeError):
	"""Не удалось получить страницу после всех попыток восстановления сессии."""

	pass


# Установка playwright в управляемую директорию
class InstallError(BrowserRuntimeError):
	"""Базовое исключение для ошибок установки."""

	pass


class InstallPreflightError(InstallError):
	"""Менеджер пакетов недоступен, установка не начиналась."""

	pass


class InstallStepError(InstallError):
	"""Шаг установки завершился с ненулевым кодом или не смог запуститься."""

	def __init__(
		self,
		message: str,
		step: str,
		exit_code: int | None = None,
	):
		super().__init__(message)
		self.message = message
		self.step = step
		self.exit_code = exit_code
