"""Каскад разрешения playwright: первая успешная стратегия выигрывает."""

import logging
from collections.abc import Sequence
from pathlib import Path

from browser_runtime.capability.engine import AutomationEngine
from browser_runtime.capability.strategies import (
	CapabilityStrategy,
	EmbeddedStrategy,
	ManagedInstallStrategy,
	UserEnvironmentStrategy,
)
from browser_runtime.exceptions import ResolutionError
from browser_runtime.install.orchestrator import InstallationOrchestrator
from browser_runtime.install.progress import ProgressSink

logger = logging.getLogger(__name__)


def default_strategies(
	project_dir: str | Path | None = None,
	managed_dir: str | Path | None = None,
	installer: InstallationOrchestrator | None = None,
) -> list[CapabilityStrategy]:
	return [
		EmbeddedStrategy(),
		UserEnvironmentStrategy(project_dir=project_dir),
		ManagedInstallStrategy(target_dir=managed_dir, installer=installer),
	]


class CapabilityResolver:
	"""Перебирает стратегии строго по порядку, каждую не более одного раза.

	Ошибки всех стратегий, кроме последней, ожидаемы во многих окружениях и только
	логируются на уровне debug. Ошибка последней стратегии завершает каскад как ResolutionError.
	"""

	def __init__(
		self,
		strategies: Sequence[CapabilityStrategy] | None = None,
		*,
		project_dir: str | Path | None = None,
		managed_dir: str | Path | None = None,
		installer: InstallationOrchestrator | None = None,
	):
		if strategies is None:
			strategies = default_strategies(project_dir=project_dir, managed_dir=managed_dir, installer=installer)
		if not strategies:
			raise ValueError('CapabilityResolver requires at least one strategy')
		self.strategies: list[CapabilityStrategy] = list(strategies)

	async def resolve(self, progress_sink: ProgressSink | None = None) -> AutomationEngine:
		*fallback_strategies, final_strategy = self.strategies

		for strategy in fallback_strategies:
			try:
				engine = await strategy.resolve(progress_sink)
			except Exception as e:
				logger.debug(f'🔍 Strategy {strategy.name} could not provide playwright: {type(e).__name__}: {e}')
				continue
			logger.debug(f'🔍 Resolved playwright via {strategy.name} strategy')
			return engine

		try:
			engine = await final_strategy.resolve(progress_sink)
		except Exception as e:
			raise ResolutionError(
				f'Failed to resolve playwright, all strategies exhausted '
				f'({", ".join(strategy.name for strategy in self.strategies)}): {e}',
				cause=e,
			) from e

		logger.debug(f'🔍 Resolved playwright via {final_strategy.name} strategy')
		return engine
