"""Установка playwright и Chromium в управляемую директорию через внешний менеджер пакетов."""

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path

import anyio
from pydantic import BaseModel, Field

from browser_runtime.config import CONFIG
from browser_runtime.exceptions import InstallPreflightError, InstallStepError
from browser_runtime.install.progress import ProgressLog, ProgressSink

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = 'requirements.txt'
ENGINE_PACKAGE = 'playwright'
ENGINE_BROWSER = 'chromium'

ProcessSpawner = Callable[..., Awaitable[int]]


async def spawn_process(
	command: Sequence[str],
	*,
	cwd: str | Path | None = None,
	env: dict[str, str] | None = None,
	inherit_output: bool = True,
) -> int:
	"""Запустить внешнюю команду и дождаться кода завершения.

	При inherit_output=True stdout/stderr наследуются, чтобы пользователь видел прогресс pip.
	Ошибка запуска (например, отсутствующий исполняемый файл) пробрасывается как OSError.
	"""
	output = None if inherit_output else asyncio.subprocess.DEVNULL
	process = await asyncio.create_subprocess_exec(
		*command,
		cwd=str(cwd) if cwd is not None else None,
		env=env,
		stdin=asyncio.subprocess.DEVNULL,
		stdout=output,
		stderr=output,
	)
	return await process.wait()


class InstallStep(BaseModel):
	"""Один внешний шаг установки."""

	name: str
	command: list[str]
	announcement: str
	env: dict[str, str] | None = Field(default=None)

	@property
	def display_command(self) -> str:
		return ' '.join(self.command)


class InstallationOrchestrator:
	"""Последовательно выполняет шаги установки playwright в управляемую директорию.

	Каждый шаг фатален: при ошибке последующие шаги не запускаются, повторов нет.
	"""

	def __init__(
		self,
		python_executable: str | None = None,
		spawn: ProcessSpawner | None = None,
		package: str = ENGINE_PACKAGE,
		browser: str = ENGINE_BROWSER,
	):
		self.python_executable = python_executable or CONFIG.PYTHON_EXECUTABLE
		self._spawn = spawn or spawn_process
		self.package = package
		self.browser = browser

	@staticmethod
	async def prepare_target(target_dir: str | Path) -> Path:
		"""Создать директорию и пустой манифест, если их ещё нет."""
		target_path = anyio.Path(target_dir)
		if not await target_path.exists():
			await target_path.mkdir(parents=True, exist_ok=True)
		manifest_path = target_path / MANIFEST_FILENAME
		if not await manifest_path.exists():
			await manifest_path.write_text('')
		return Path(target_dir)

	def build_steps(self, target_dir: Path) -> list[InstallStep]:
		engine_env = dict(os.environ)
		existing_pythonpath = engine_env.get('PYTHONPATH')
		engine_env['PYTHONPATH'] = str(target_dir) if not existing_pythonpath else f'{target_dir}{os.pathsep}{existing_pythonpath}'

		return [
			InstallStep(
				name='install package',
				command=[self.python_executable, '-m', 'pip', 'install', '--target', str(target_dir), self.package],
				announcement=f'Playwright is required for the Browser Agent. Installing to {target_dir}...',
			),
			InstallStep(
				name='install browser',
				command=[self.python_executable, '-m', 'playwright', 'install', self.browser],
				announcement=f'Installing {self.browser.capitalize()} browser...',
				env=engine_env,
			),
		]

	async def install(self, target_dir: str | Path, progress_sink: ProgressSink | None = None) -> None:
		"""Установить playwright и браузер в target_dir.

		Args:
			target_dir: Управляемая директория установки
			progress_sink: Приёмник накопленного текста прогресса (по умолчанию debug-лог)

		Raises:
			InstallPreflightError: pip недоступен для выбранного интерпретатора
			InstallStepError: Один из шагов установки завершился ошибкой
		"""
		target_path = await self.prepare_target(target_dir)
		progress = ProgressLog(progress_sink, fallback_logger=logger)

		await self._preflight()

		for step in self.build_steps(target_path):
			progress.append(step.announcement)
			await self._run_step(step, target_path)

		progress.append('Playwright installation complete.')

	async def _preflight(self) -> None:
		"""Проверить, что менеджер пакетов вообще запускается."""
		message = (
			f'pip is required to install the browser agent components, '
			f'but it was not found in your PATH (python: {self.python_executable}).'
		)
		try:
			exit_code = await self._spawn([self.python_executable, '-m', 'pip', '--version'], inherit_output=False)
		except OSError as e:
			logger.debug(f'pip preflight check could not start: {type(e).__name__}: {e}')
			raise InstallPreflightError(message) from e

		if exit_code != 0:
			logger.debug(f'pip preflight check exited with code {exit_code}')
			raise InstallPreflightError(message)

	async def _run_step(self, step: InstallStep, target_dir: Path) -> None:
		logger.debug(f'📦 Running install step "{step.name}": {step.display_command}')
		try:
			exit_code = await self._spawn(step.command, cwd=target_dir, env=step.env, inherit_output=True)
		except OSError as e:
			raise InstallStepError(
				f'{step.display_command} failed to start: {e}',
				step=step.name,
			) from e

		if exit_code != 0:
			raise InstallStepError(
				f'{step.display_command} exited with code {exit_code}',
				step=step.name,
				exit_code=exit_code,
			)
		logger.debug(f'📦 Install step "{step.name}" finished')
