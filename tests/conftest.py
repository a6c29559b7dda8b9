import asyncio
import os
from dataclasses import dataclass, field
from pathlib import Path

os.environ['BROWSER_RUNTIME_SETUP_LOGGING'] = 'false'

import pytest
import pytest_asyncio

from browser_runtime.capability.engine import AutomationEngine
from browser_runtime.capability.resolver import CapabilityResolver
from browser_runtime.capability.strategies import CapabilityStrategy
from browser_runtime.session.manager import SessionManager


class FakeEmitter:
	def __init__(self):
		self._handlers: dict[str, list] = {}

	def on(self, event: str, handler) -> None:
		self._handlers.setdefault(event, []).append(handler)

	def _fire(self, event: str) -> None:
		for handler in list(self._handlers.get(event, [])):
			handler(self)


class FakePage(FakeEmitter):
	def __init__(self, context: 'FakeContext'):
		super().__init__()
		self.context = context
		self._closed = False
		self.visited: list[str] = []

	def is_closed(self) -> bool:
		return self._closed

	def simulate_close(self) -> None:
		self._closed = True
		self._fire('close')

	async def goto(self, url: str) -> None:
		self.visited.append(url)


class FakeContext:
	def __init__(self, browser: 'FakeBrowser', options: dict):
		self.browser = browser
		self.options = options
		self.pages: list[FakePage] = []

	async def new_page(self) -> FakePage:
		await asyncio.sleep(0)
		page = FakePage(self)
		self.pages.append(page)
		return page


class FakeBrowser(FakeEmitter):
	def __init__(self, disconnect_on_new_context: bool = False, close_error: Exception | None = None):
		super().__init__()
		self.contexts: list[FakeContext] = []
		self.close_calls = 0
		self._connected = True
		self._disconnect_on_new_context = disconnect_on_new_context
		self._close_error = close_error

	def is_connected(self) -> bool:
		return self._connected

	def simulate_disconnect(self) -> None:
		self._connected = False
		self._fire('disconnected')

	async def new_context(self, **options) -> FakeContext:
		await asyncio.sleep(0)
		context = FakeContext(self, options)
		self.contexts.append(context)
		if self._disconnect_on_new_context:
			self.simulate_disconnect()
		return context

	async def close(self) -> None:
		self.close_calls += 1
		if self._close_error is not None:
			raise self._close_error
		if self._connected:
			self.simulate_disconnect()


class FakeChromium:
	executable_path = '/fake/ms-playwright/chromium/chrome'

	def __init__(self):
		self.launch_calls: list[dict] = []
		self.browsers: list[FakeBrowser] = []
		self.launch_error: Exception | None = None
		self.browser_options: dict = {}

	async def launch(self, **options) -> FakeBrowser:
		self.launch_calls.append(options)
		await asyncio.sleep(0)
		if self.launch_error is not None:
			raise self.launch_error
		browser = FakeBrowser(**self.browser_options)
		self.browsers.append(browser)
		return browser


class FakeDriver:
	def __init__(self, chromium: FakeChromium):
		self.chromium = chromium
		self.stop_calls = 0

	async def stop(self) -> None:
		self.stop_calls += 1


class FakeDriverStarter:
	def __init__(self, module: 'FakePlaywrightModule'):
		self._module = module

	async def start(self) -> FakeDriver:
		driver = FakeDriver(self._module.chromium)
		self._module.drivers.append(driver)
		return driver


class FakePlaywrightModule:
	"""Подменяет модуль playwright.async_api."""

	def __init__(self):
		self.chromium = FakeChromium()
		self.drivers: list[FakeDriver] = []

	def async_playwright(self) -> FakeDriverStarter:
		return FakeDriverStarter(self)


class RecordingStrategy(CapabilityStrategy):
	def __init__(self, name: str, module: FakePlaywrightModule | None = None, error: Exception | None = None):
		super().__init__()
		self.name = name
		self.module = module
		self.error = error
		self.calls = 0
		self.sinks: list = []

	async def resolve(self, progress_sink=None) -> AutomationEngine:
		self.calls += 1
		self.sinks.append(progress_sink)
		if self.error is not None:
			raise self.error
		return AutomationEngine(self.module, source=self.name)


@dataclass
class SpawnCall:
	command: list[str]
	cwd: Path | None
	env: dict[str, str] | None
	inherit_output: bool


@dataclass
class FakeSpawner:
	"""Подменяет запуск внешних процессов; коды завершения задаются по виду команды."""

	exit_codes: dict[str, int] = field(default_factory=dict)
	errors: dict[str, Exception] = field(default_factory=dict)
	calls: list[SpawnCall] = field(default_factory=list)

	@staticmethod
	def classify(command: list[str]) -> str:
		if command[1:] == ['-m', 'pip', '--version']:
			return 'preflight'
		if command[1:4] == ['-m', 'pip', 'install']:
			return 'install package'
		if command[1:4] == ['-m', 'playwright', 'install']:
			return 'install browser'
		return 'unknown'

	@property
	def kinds(self) -> list[str]:
		return [self.classify(call.command) for call in self.calls]

	async def __call__(self, command, *, cwd=None, env=None, inherit_output=True) -> int:
		command = list(command)
		self.calls.append(SpawnCall(command, Path(cwd) if cwd is not None else None, env, inherit_output))
		kind = self.classify(command)
		if kind in self.errors:
			raise self.errors[kind]
		return self.exit_codes.get(kind, 0)


@pytest.fixture
def fake_playwright() -> FakePlaywrightModule:
	return FakePlaywrightModule()


@pytest.fixture
def embedded_strategy(fake_playwright) -> RecordingStrategy:
	return RecordingStrategy('embedded', module=fake_playwright)


@pytest.fixture
def resolver(embedded_strategy) -> CapabilityResolver:
	return CapabilityResolver([embedded_strategy])


@pytest_asyncio.fixture
async def manager(resolver):
	session_manager = SessionManager(resolver=resolver)
	yield session_manager
	await session_manager.release()
