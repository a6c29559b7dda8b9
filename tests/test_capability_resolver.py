import importlib.util
import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from browser_runtime.capability.engine import AutomationEngine, import_engine_module
from browser_runtime.capability.resolver import CapabilityResolver, default_strategies
from browser_runtime.capability.strategies import (
	EmbeddedStrategy,
	ManagedInstallStrategy,
	UserEnvironmentStrategy,
)
from browser_runtime.exceptions import InstallStepError, ResolutionError
from browser_runtime.install.orchestrator import MANIFEST_FILENAME

from .conftest import FakePlaywrightModule, RecordingStrategy

playwright_installed = importlib.util.find_spec('playwright') is not None


class ScriptedImporter:
	"""Импортер, который по очереди выбрасывает или возвращает заданные результаты."""

	def __init__(self, *outcomes):
		self.outcomes = list(outcomes)
		self.site_dirs: list[Path | None] = []

	def __call__(self, site_dir):
		self.site_dirs.append(site_dir)
		outcome = self.outcomes.pop(0)
		if isinstance(outcome, Exception):
			raise outcome
		return outcome


@pytest.mark.asyncio
async def test_first_successful_strategy_wins(fake_playwright):
	embedded = RecordingStrategy('embedded', module=fake_playwright)
	user_environment = RecordingStrategy('user-environment', module=fake_playwright)
	managed = RecordingStrategy('managed-install', module=fake_playwright)

	engine = await CapabilityResolver([embedded, user_environment, managed]).resolve()

	assert engine.source == 'embedded'
	assert (embedded.calls, user_environment.calls, managed.calls) == (1, 0, 0)


@pytest.mark.asyncio
async def test_failed_strategies_fall_through_in_order(fake_playwright):
	embedded = RecordingStrategy('embedded', error=ModuleNotFoundError('No module named playwright'))
	user_environment = RecordingStrategy('user-environment', module=fake_playwright)
	managed = RecordingStrategy('managed-install', module=fake_playwright)

	engine = await CapabilityResolver([embedded, user_environment, managed]).resolve()

	assert engine.source == 'user-environment'
	assert (embedded.calls, user_environment.calls, managed.calls) == (1, 1, 0)


@pytest.mark.asyncio
async def test_final_strategy_failure_raises_resolution_error():
	install_error = InstallStepError('pip install exited with code 1', step='install package', exit_code=1)
	embedded = RecordingStrategy('embedded', error=ModuleNotFoundError('embedded'))
	user_environment = RecordingStrategy('user-environment', error=ModuleNotFoundError('user'))
	managed = RecordingStrategy('managed-install', error=install_error)

	with pytest.raises(ResolutionError) as exc_info:
		await CapabilityResolver([embedded, user_environment, managed]).resolve()

	assert exc_info.value.cause is install_error
	assert exc_info.value.__cause__ is install_error
	assert (embedded.calls, user_environment.calls, managed.calls) == (1, 1, 1)


@pytest.mark.asyncio
async def test_progress_sink_is_passed_to_strategies(fake_playwright):
	received: list[str] = []
	embedded = RecordingStrategy('embedded', error=ModuleNotFoundError('embedded'))
	managed = RecordingStrategy('managed-install', module=fake_playwright)

	await CapabilityResolver([embedded, managed]).resolve(received.append)

	assert embedded.sinks == [received.append]
	assert managed.sinks == [received.append]


def test_resolver_requires_strategies():
	with pytest.raises(ValueError):
		CapabilityResolver([])


def test_default_strategy_order(tmp_path):
	strategies = default_strategies(project_dir=tmp_path / 'project', managed_dir=tmp_path / 'deps')

	assert [type(strategy) for strategy in strategies] == [EmbeddedStrategy, UserEnvironmentStrategy, ManagedInstallStrategy]
	assert [strategy.name for strategy in strategies] == ['embedded', 'user-environment', 'managed-install']
	assert strategies[1].project_dir == tmp_path / 'project'
	assert strategies[2].target_dir == tmp_path / 'deps'


@pytest.mark.asyncio
async def test_embedded_strategy_imports_from_current_environment(fake_playwright):
	importer = ScriptedImporter(fake_playwright)

	engine = await EmbeddedStrategy(importer=importer).resolve()

	assert importer.site_dirs == [None]
	assert engine.source == 'embedded'
	assert engine.location is None


@pytest.mark.asyncio
async def test_user_environment_strategy_uses_project_venv(tmp_path, monkeypatch, fake_playwright):
	monkeypatch.delenv('VIRTUAL_ENV', raising=False)
	site_dir = tmp_path / '.venv' / 'lib' / 'python3.12' / 'site-packages'
	(site_dir / 'playwright').mkdir(parents=True)
	importer = ScriptedImporter(fake_playwright)

	engine = await UserEnvironmentStrategy(project_dir=tmp_path, importer=importer).resolve()

	assert importer.site_dirs == [site_dir]
	assert engine.source == 'user-environment'
	assert engine.location == site_dir


@pytest.mark.asyncio
async def test_user_environment_strategy_prefers_active_virtualenv(tmp_path, monkeypatch, fake_playwright):
	active_site_dir = tmp_path / 'active' / 'lib' / 'python3.11' / 'site-packages'
	(active_site_dir / 'playwright').mkdir(parents=True)
	project_site_dir = tmp_path / 'project' / 'venv' / 'lib' / 'python3.11' / 'site-packages'
	(project_site_dir / 'playwright').mkdir(parents=True)
	monkeypatch.setenv('VIRTUAL_ENV', str(tmp_path / 'active'))
	importer = ScriptedImporter(fake_playwright)

	engine = await UserEnvironmentStrategy(project_dir=tmp_path / 'project', importer=importer).resolve()

	assert engine.location == active_site_dir


@pytest.mark.asyncio
async def test_user_environment_strategy_without_engine_fails(tmp_path, monkeypatch):
	monkeypatch.delenv('VIRTUAL_ENV', raising=False)
	(tmp_path / '.venv' / 'lib' / 'python3.12' / 'site-packages').mkdir(parents=True)
	importer = ScriptedImporter()

	with pytest.raises(ModuleNotFoundError):
		await UserEnvironmentStrategy(project_dir=tmp_path, importer=importer).resolve()

	assert importer.site_dirs == []


@pytest.mark.asyncio
async def test_managed_strategy_uses_existing_install(tmp_path, fake_playwright):
	installer = AsyncMock()
	importer = ScriptedImporter(fake_playwright)
	target_dir = tmp_path / 'deps'

	engine = await ManagedInstallStrategy(target_dir=target_dir, installer=installer, importer=importer).resolve()

	installer.install.assert_not_called()
	assert engine.source == 'managed-install'
	assert engine.location == target_dir
	assert (target_dir / MANIFEST_FILENAME).read_text() == ''


@pytest.mark.asyncio
async def test_managed_strategy_installs_then_retries_import(tmp_path, fake_playwright):
	installer = AsyncMock()
	importer = ScriptedImporter(ModuleNotFoundError('No module named playwright'), fake_playwright)
	target_dir = tmp_path / 'deps'
	received: list[str] = []

	engine = await ManagedInstallStrategy(target_dir=target_dir, installer=installer, importer=importer).resolve(received.append)

	installer.install.assert_awaited_once_with(target_dir, received.append)
	assert importer.site_dirs == [target_dir, target_dir]
	assert engine.location == target_dir


@pytest.mark.asyncio
async def test_managed_strategy_gives_up_after_one_install(tmp_path):
	installer = AsyncMock()
	importer = ScriptedImporter(ModuleNotFoundError('before install'), ModuleNotFoundError('after install'))

	with pytest.raises(ModuleNotFoundError, match='after install'):
		await ManagedInstallStrategy(target_dir=tmp_path, installer=installer, importer=importer).resolve()

	assert installer.install.await_count == 1


@pytest.mark.asyncio
async def test_managed_strategy_propagates_install_error(tmp_path):
	install_error = InstallStepError('playwright install chromium exited with code 1', step='install browser', exit_code=1)
	installer = AsyncMock()
	installer.install.side_effect = install_error
	importer = ScriptedImporter(ModuleNotFoundError('missing'))

	with pytest.raises(InstallStepError) as exc_info:
		await ManagedInstallStrategy(target_dir=tmp_path, installer=installer, importer=importer).resolve()

	assert exc_info.value is install_error
	assert importer.site_dirs == [tmp_path]


@pytest.mark.asyncio
async def test_automation_engine_driver_lifecycle(fake_playwright):
	engine = AutomationEngine(fake_playwright, source='embedded')
	assert engine.executable_identity() == '<playwright driver not started>'

	browser = await engine.launch(headless=False)

	assert engine.is_started
	assert browser is fake_playwright.chromium.browsers[0]
	assert engine.executable_identity() == fake_playwright.chromium.executable_path

	await engine.stop()
	await engine.stop()
	assert not engine.is_started
	assert fake_playwright.drivers[0].stop_calls == 1


@pytest.fixture
def isolated_engine_import():
	original_path = list(sys.path)
	yield
	sys.path[:] = original_path
	for module_name in [name for name in sys.modules if name == 'playwright' or name.startswith('playwright.')]:
		del sys.modules[module_name]


@pytest.mark.skipif(playwright_installed, reason='playwright is importable from the test environment')
def test_import_engine_module_from_site_dir(tmp_path, isolated_engine_import):
	package_dir = tmp_path / 'playwright'
	package_dir.mkdir()
	(package_dir / '__init__.py').write_text('')
	(package_dir / 'async_api.py').write_text('def async_playwright():\n    return "fake driver"\n')

	module = import_engine_module(tmp_path)

	assert module.async_playwright() == 'fake driver'
	assert str(tmp_path) in sys.path


@pytest.mark.skipif(playwright_installed, reason='playwright is importable from the test environment')
def test_import_engine_module_failure_restores_sys_path(tmp_path, isolated_engine_import):
	with pytest.raises(ModuleNotFoundError):
		import_engine_module(tmp_path)

	assert str(tmp_path) not in sys.path
	assert 'playwright' not in sys.modules


def test_automation_engine_repr_includes_location():
	engine = AutomationEngine(FakePlaywrightModule(), source='managed-install', location=Path('/deps'))

	assert repr(engine) == 'AutomationEngine(source=managed-install, location=/deps)'


def write_engine_package(site_dir: Path, async_api_source: str) -> None:
	package_dir = site_dir / 'playwright'
	package_dir.mkdir(parents=True)
	(package_dir / '__init__.py').write_text('')
	(package_dir / 'async_api.py').write_text(async_api_source)


@pytest.mark.skipif(playwright_installed, reason='playwright is importable from the test environment')
def test_half_imported_embedded_engine_does_not_shadow_site_dir(tmp_path, monkeypatch, isolated_engine_import):
	embedded_dir = tmp_path / 'embedded'
	managed_dir = tmp_path / 'managed'
	write_engine_package(embedded_dir, "raise ImportError(\"No module named 'greenlet'\")\n")
	write_engine_package(managed_dir, 'def async_playwright():\n    return "managed driver"\n')
	monkeypatch.syspath_prepend(str(embedded_dir))

	with pytest.raises(ImportError, match='greenlet'):
		import_engine_module(None)

	assert 'playwright' not in sys.modules

	module = import_engine_module(managed_dir)

	assert module.async_playwright() == 'managed driver'
