from typing import TYPE_CHECKING

# Заглушки типов для ленивых импортов
if TYPE_CHECKING:
	from .manager import SessionManager, SessionState
	from .profile import BrowserLaunchArgs, BrowserNewContextArgs


# Словарь для ленивой загрузки компонентов сессии
_LAZY_IMPORTS = {
	'SessionManager': ('.manager', 'SessionManager'),
	'SessionState': ('.manager', 'SessionState'),
	'BrowserLaunchArgs': ('.profile', 'BrowserLaunchArgs'),
	'BrowserNewContextArgs': ('.profile', 'BrowserNewContextArgs'),
}


def __getattr__(name: str):
	"""Механизм ленивой загрузки для компонентов сессии."""
	if name not in _LAZY_IMPORTS:
		raise AttributeError(f"module '{__name__}' has no attribute '{name}'")

	module_path, attr_name = _LAZY_IMPORTS[name]
	full_module_path = f'browser_runtime.session{module_path}'
	try:
		from importlib import import_module

		module = import_module(full_module_path)
		attr = getattr(module, attr_name)
		# Кешируем импортированный атрибут в глобальных переменных модуля
		globals()[name] = attr
		return attr
	except ImportError as e:
		raise ImportError(f'Failed to import {name} from {full_module_path}: {e}') from e


__all__ = [
	'BrowserLaunchArgs',
	'BrowserNewContextArgs',
	'SessionManager',
	'SessionState',
]
