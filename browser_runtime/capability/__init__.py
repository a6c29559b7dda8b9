"""Получение движка автоматизации (playwright)."""

from browser_runtime.capability.engine import AutomationEngine, import_engine_module
from browser_runtime.capability.resolver import CapabilityResolver, default_strategies
from browser_runtime.capability.strategies import (
	CapabilityStrategy,
	EmbeddedStrategy,
	ManagedInstallStrategy,
	UserEnvironmentStrategy,
)

__all__ = [
	'AutomationEngine',
	'CapabilityResolver',
	'CapabilityStrategy',
	'EmbeddedStrategy',
	'ManagedInstallStrategy',
	'UserEnvironmentStrategy',
	'default_strategies',
	'import_engine_module',
]
