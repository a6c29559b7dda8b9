"""Стратегии получения playwright: встроенный, из окружения проекта, из управляемой установки."""

import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from types import ModuleType
from typing import ClassVar

from browser_runtime.capability.engine import ENGINE_PACKAGE, AutomationEngine, import_engine_module
from browser_runtime.config import CONFIG
from browser_runtime.install.orchestrator import InstallationOrchestrator
from browser_runtime.install.progress import ProgressSink

logger = logging.getLogger(__name__)

EngineImporter = Callable[[Path | None], ModuleType]

VIRTUALENV_DIRNAMES = ('.venv', 'venv')


class CapabilityStrategy(ABC):
	"""Один способ получить AutomationEngine.

	resolve() либо возвращает движок, либо выбрасывает исключение; решение о том,
	проглотить ошибку или нет, принимает CapabilityResolver.
	"""

	name: ClassVar[str] = 'strategy'

	def __init__(self, importer: EngineImporter | None = None):
		self._importer = importer or import_engine_module

	@abstractmethod
	async def resolve(self, progress_sink: ProgressSink | None = None) -> AutomationEngine: ...

	def __repr__(self) -> str:
		return f'{self.__class__.__name__}()'


class EmbeddedStrategy(CapabilityStrategy):
	"""playwright, установленный рядом с запущенной программой."""

	name: ClassVar[str] = 'embedded'

	async def resolve(self, progress_sink: ProgressSink | None = None) -> AutomationEngine:
		module = self._importer(None)
		return AutomationEngine(module, source=self.name)


class UserEnvironmentStrategy(CapabilityStrategy):
	"""playwright из виртуального окружения проекта вызывающей стороны."""

	name: ClassVar[str] = 'user-environment'

	def __init__(self, project_dir: str | Path | None = None, importer: EngineImporter | None = None):
		super().__init__(importer)
		self._project_dir = Path(project_dir) if project_dir is not None else None

	@property
	def project_dir(self) -> Path:
		return self._project_dir if self._project_dir is not None else CONFIG.PROJECT_DIR

	def candidate_environments(self) -> list[Path]:
		environments: list[Path] = []
		virtual_env = os.environ.get('VIRTUAL_ENV')
		if virtual_env:
			environments.append(Path(virtual_env))
		environments.extend(self.project_dir / dirname for dirname in VIRTUALENV_DIRNAMES)

		unique_environments = []
		for environment in environments:
			if environment not in unique_environments:
				unique_environments.append(environment)
		return unique_environments

	def candidate_site_dirs(self) -> list[Path]:
		site_dirs: list[Path] = []
		for environment in self.candidate_environments():
			# POSIX: lib/pythonX.Y/site-packages, Windows: Lib/site-packages
			site_dirs.extend(sorted((environment / 'lib').glob('python*/site-packages'), reverse=True))
			site_dirs.append(environment / 'Lib' / 'site-packages')
		return [site_dir for site_dir in site_dirs if site_dir.is_dir()]

	async def resolve(self, progress_sink: ProgressSink | None = None) -> AutomationEngine:
		for site_dir in self.candidate_site_dirs():
			if not (site_dir / ENGINE_PACKAGE).is_dir():
				continue
			logger.debug(f'Found {ENGINE_PACKAGE} in project environment: {site_dir}')
			module = self._importer(site_dir)
			return AutomationEngine(module, source=self.name, location=site_dir)

		raise ModuleNotFoundError(f'{ENGINE_PACKAGE} is not installed in any environment of {self.project_dir}')


class ManagedInstallStrategy(CapabilityStrategy):
	"""playwright из управляемой директории; при отсутствии устанавливается туда один раз."""

	name: ClassVar[str] = 'managed-install'

	def __init__(
		self,
		target_dir: str | Path | None = None,
		installer: InstallationOrchestrator | None = None,
		importer: EngineImporter | None = None,
	):
		super().__init__(importer)
		self._target_dir = Path(target_dir) if target_dir is not None else None
		self.installer = installer or InstallationOrchestrator()

	@property
	def target_dir(self) -> Path:
		return self._target_dir if self._target_dir is not None else CONFIG.DEPENDENCIES_DIR

	def _load(self, target_dir: Path) -> AutomationEngine:
		module = self._importer(target_dir)
		return AutomationEngine(module, source=self.name, location=target_dir)

	async def resolve(self, progress_sink: ProgressSink | None = None) -> AutomationEngine:
		target_dir = await InstallationOrchestrator.prepare_target(self.target_dir)

		try:
			return self._load(target_dir)
		except Exception as e:
			logger.debug(f'Playwright not found in {target_dir} ({type(e).__name__}: {e}). Installing...')

		await self.installer.install(target_dir, progress_sink)
		return self._load(target_dir)
