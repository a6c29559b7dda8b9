"""Управление единственной сессией браузера: браузер, контекст и активная страница.

SessionManager лениво получает playwright через CapabilityResolver, запускает браузер
и поддерживает тройку {Browser, BrowserContext, Page} в рабочем состоянии:

- отключение браузера синхронно сбрасывает все три ссылки, следующий запрос перезапускает браузер
- закрытие страницы сбрасывает только страницу, следующий запрос создаёт новую в том же контексте
- параллельные запросы во время восстановления ожидают одну и ту же задачу
"""

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, Self

from bubus import BaseEvent, EventBus
from uuid_extensions import uuid7str

from browser_runtime.capability.engine import AutomationEngine
from browser_runtime.capability.resolver import CapabilityResolver
from browser_runtime.exceptions import LaunchError, PageCreationError
from browser_runtime.install.progress import ProgressSink
from browser_runtime.session.events import (
	BrowserDisconnectedEvent,
	BrowserLaunchedEvent,
	PageClosedEvent,
	PageCreatedEvent,
	SessionReleasedEvent,
)
from browser_runtime.session.profile import DEFAULT_CONTEXT_ARGS, DEFAULT_LAUNCH_ARGS

if TYPE_CHECKING:
	from playwright.async_api import Browser, BrowserContext, Page


class SessionState(str, Enum):
	UNINITIALIZED = 'uninitialized'
	LAUNCHING = 'launching'
	READY = 'ready'
	CLOSED = 'closed'


class SessionManager:
	"""Фасад сессии браузера с самовосстановлением.

	Экземпляр создаётся явно и передаётся тем компонентам, которым нужна автоматизация;
	его время жизни совпадает со временем жизни владельца:

	```python
	async with SessionManager() as manager:
		page = await manager.acquire_page()
		await page.goto('https://example.com')
	```
	"""

	def __init__(self, resolver: CapabilityResolver | None = None, id: str | None = None):
		self.id = id or uuid7str()
		self.resolver = resolver or CapabilityResolver()
		self.event_bus = self._new_event_bus()
		self.state = SessionState.UNINITIALIZED

		self._engine: AutomationEngine | None = None
		self._browser: 'Browser | None' = None
		self._context: 'BrowserContext | None' = None
		self._page: 'Page | None' = None

		# Общая задача восстановления для параллельных вызовов acquire_page()
		self._pending_repair: 'asyncio.Task[Page] | None' = None

	@property
	def logger(self) -> logging.Logger:
		return logging.getLogger(f'browser_runtime.{self}')

	def __str__(self) -> str:
		return f'SessionManager#{self.id[-4:]}'

	def __repr__(self) -> str:
		return f'SessionManager#{self.id[-4:]} (state={self.state.value}, engine={self._engine!r})'

	@property
	def browser(self) -> 'Browser | None':
		return self._browser

	@property
	def context(self) -> 'BrowserContext | None':
		return self._context

	@property
	def page(self) -> 'Page | None':
		return self._page

	@property
	def is_ready(self) -> bool:
		return (
			self._browser is not None
			and self._browser.is_connected()
			and self._page is not None
			and not self._page.is_closed()
		)

	async def acquire_page(self, progress_sink: ProgressSink | None = None) -> 'Page':
		"""Вернуть готовую страницу, при необходимости запустив или починив сессию.

		Args:
			progress_sink: Приёмник прогресса установки playwright, если она понадобится

		Raises:
			ResolutionError: playwright не удалось получить ни одной стратегией
			LaunchError: playwright получен, но браузер не запустился
			PageCreationError: страницу не удалось создать
		"""
		if self.is_ready:
			return self._page  # type: ignore[return-value]

		if self._pending_repair is None:
			self._pending_repair = asyncio.ensure_future(self._repair(progress_sink))
			self._pending_repair.add_done_callback(self._clear_pending_repair)
		else:
			self.logger.debug('⏳ Session repair already in flight, waiting for it')

		return await asyncio.shield(self._pending_repair)

	def _clear_pending_repair(self, task: 'asyncio.Task[Page]') -> None:
		if self._pending_repair is task:
			self._pending_repair = None
		# Ошибку забирают ожидающие вызовы; если их всех отменили, забираем её здесь
		if not task.cancelled():
			task.exception()

	async def _repair(self, progress_sink: ProgressSink | None) -> 'Page':
		relaunched = False
		if self._browser is None or not self._browser.is_connected():
			await self._launch(progress_sink)
			relaunched = True

		if self._page is None or self._page.is_closed():
			try:
				await self._open_page(relaunched)
			except Exception as e:
				message = f'Failed to create page: {type(e).__name__}: {e}'
				self.logger.debug(message)
				self.state = SessionState.UNINITIALIZED
				raise PageCreationError(message) from e

		if self._page is None:
			message = 'Failed to create page: browser disconnected during page setup'
			self.logger.debug(message)
			self.state = SessionState.UNINITIALIZED
			raise PageCreationError(message)

		self.state = SessionState.READY
		return self._page

	async def _open_page(self, relaunched: bool) -> None:
		"""Создать контекст (если его нет) и новую активную страницу в нём."""
		if self._context is None and self._browser is not None and self._browser.is_connected():
			if not relaunched:
				# Браузер жив, но контекст потерян
				self.logger.debug('Browser is connected but has no context, creating a new one')
			browser = self._browser
			context = await browser.new_context(**DEFAULT_CONTEXT_ARGS.to_playwright_kwargs())
			if self._browser is browser:
				self._context = context

		context = self._context
		if context is None:
			return

		page = await context.new_page()
		# Браузер мог отключиться, пока создавалась страница
		if self._context is context:
			page.on('close', self._on_page_closed)
			self._page = page
			self._emit(PageCreatedEvent(relaunched=relaunched))

	async def _launch(self, progress_sink: ProgressSink | None) -> None:
		self.state = SessionState.LAUNCHING

		# Драйвер предыдущего браузера больше не нужен после отключения
		await self._stop_engine()

		try:
			engine = await self.resolver.resolve(progress_sink)
		except Exception:
			self.state = SessionState.UNINITIALIZED
			raise

		try:
			await engine.start()
			self.logger.debug(f'🚀 Launching browser with executable_path: {engine.executable_identity()}')
			browser = await engine.launch(**DEFAULT_LAUNCH_ARGS.to_playwright_kwargs())
		except Exception as e:
			executable_path = engine.executable_identity()
			message = f'Failed to launch browser: {e}. Executable path: {executable_path}'
			self.logger.debug(message)
			self.logger.error(f'❌ {message}')
			await self._stop_quietly(engine)
			self.state = SessionState.UNINITIALIZED
			raise LaunchError(message, executable_path=executable_path, cause=e) from e

		self._engine = engine
		self._browser = browser
		self._context = None
		self._page = None
		browser.on('disconnected', self._on_browser_disconnected)
		self._emit(BrowserLaunchedEvent(executable_path=engine.executable_identity(), strategy=engine.source))

	def _on_browser_disconnected(self, browser: 'Browser') -> None:
		# Уведомление от уже заменённого браузера не должно сбрасывать новую сессию
		if browser is not self._browser:
			return
		self._browser = None
		self._context = None
		self._page = None
		self.state = SessionState.UNINITIALIZED
		self.logger.debug('🔌 Browser disconnected, session cleared')
		self._emit(BrowserDisconnectedEvent())

	def _on_page_closed(self, page: 'Page') -> None:
		if page is not self._page:
			return
		self._page = None
		self.logger.debug('Active page closed, it will be recreated on next request')
		self._emit(PageClosedEvent())

	async def release(self) -> None:
		"""Закрыть браузер и сбросить все ссылки независимо от исхода закрытия.

		Повторный вызов и вызов до первого acquire_page() ничего не делают.
		Шина событий останавливается и заменяется новой, так что менеджер можно
		использовать повторно; подписки на старой шине при этом теряются.
		"""
		browser = self._browser
		had_resources = browser is not None or self._engine is not None

		try:
			if browser is not None:
				try:
					await browser.close()
				except Exception as e:
					self.logger.debug(f'Error closing browser during release: {type(e).__name__}: {e}')
			await self._stop_engine()
		finally:
			self._browser = None
			self._context = None
			self._page = None
			self._engine = None
			self.state = SessionState.CLOSED

		if had_resources:
			self.logger.debug('✅ Browser session released')
			await self.event_bus.dispatch(SessionReleasedEvent(had_browser=browser is not None))

		await self.event_bus.stop(clear=True, timeout=5)
		self.event_bus = self._new_event_bus()

	def _new_event_bus(self) -> EventBus:
		return EventBus(name=f'SessionManager_{self.id[-8:]}')

	async def _stop_engine(self) -> None:
		engine, self._engine = self._engine, None
		if engine is not None:
			await self._stop_quietly(engine)

	async def _stop_quietly(self, engine: AutomationEngine) -> None:
		try:
			await engine.stop()
		except Exception as e:
			self.logger.debug(f'Error stopping playwright driver: {type(e).__name__}: {e}')

	def _emit(self, event: BaseEvent) -> None:
		"""Отправить уведомление наблюдателям, если запущен цикл событий."""
		try:
			asyncio.get_running_loop()
		except RuntimeError:
			return
		self.event_bus.dispatch(event)

	async def __aenter__(self) -> Self:
		return self

	async def __aexit__(self, exc_type, exc_value, traceback) -> None:
		await self.release()
