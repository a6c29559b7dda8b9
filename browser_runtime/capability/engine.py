"""Обёртка над модулем playwright, найденным одной из стратегий разрешения."""

import importlib
import logging
import sys
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
	from playwright.async_api import Browser, Playwright

logger = logging.getLogger(__name__)

ENGINE_MODULE = 'playwright.async_api'
ENGINE_PACKAGE = 'playwright'


def _purge_engine_modules() -> None:
	"""Удалить частично импортированные модули playwright из sys.modules."""
	for module_name in list(sys.modules):
		if module_name == ENGINE_PACKAGE or module_name.startswith(f'{ENGINE_PACKAGE}.'):
			del sys.modules[module_name]


def import_engine_module(site_dir: Path | None = None) -> ModuleType:
	"""Импортировать playwright.async_api.

	Без site_dir используется окружение текущего интерпретатора. С site_dir директория
	добавляется в начало sys.path и остаётся там только при успешном импорте: подмодули
	playwright загружаются лениво и должны находиться позже по тому же пути.
	"""
	if site_dir is None:
		try:
			return importlib.import_module(ENGINE_MODULE)
		except Exception:
			# Пакет playwright мог импортироваться частично и закрыть собой другие site_dir
			_purge_engine_modules()
			raise

	site_path = str(site_dir)
	inserted = site_path not in sys.path
	if inserted:
		sys.path.insert(0, site_path)
	importlib.invalidate_caches()

	try:
		return importlib.import_module(ENGINE_MODULE)
	except Exception:
		if inserted and site_path in sys.path:
			sys.path.remove(site_path)
		_purge_engine_modules()
		raise


class AutomationEngine:
	"""Возможность запускать Chromium через playwright.

	Драйвер playwright запускается лениво при первом start()/launch() и должен быть
	остановлен через stop(), когда браузер, запущенный этим движком, больше не нужен.
	"""

	def __init__(self, module: ModuleType, source: str, location: Path | None = None):
		self._module = module
		self.source = source
		self.location = location
		self._playwright: 'Playwright | None' = None

	@property
	def is_started(self) -> bool:
		return self._playwright is not None

	async def start(self) -> 'Playwright':
		"""Запустить драйвер playwright, если он ещё не запущен."""
		if self._playwright is None:
			self._playwright = await self._module.async_playwright().start()
		return self._playwright

	def executable_identity(self) -> str:
		"""Путь к исполняемому файлу Chromium для диагностики."""
		if self._playwright is None:
			return '<playwright driver not started>'
		return str(self._playwright.chromium.executable_path)

	async def launch(self, **options: Any) -> 'Browser':
		playwright = await self.start()
		return await playwright.chromium.launch(**options)

	async def stop(self) -> None:
		if self._playwright is None:
			return
		playwright, self._playwright = self._playwright, None
		await playwright.stop()

	def __repr__(self) -> str:
		location = f', location={self.location}' if self.location else ''
		return f'AutomationEngine(source={self.source}{location})'
