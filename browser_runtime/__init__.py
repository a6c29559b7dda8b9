"""Рантайм сессии браузера: ленивое получение playwright и самовосстанавливающаяся страница"""

import os
from typing import TYPE_CHECKING

from browser_runtime.logging_config import setup_logging

# Setup logging
if os.environ.get('BROWSER_RUNTIME_SETUP_LOGGING', 'true').lower() != 'false':
	from browser_runtime.config import CONFIG

	logger = setup_logging(debug_log_file=CONFIG.DEBUG_LOG_FILE, info_log_file=CONFIG.INFO_LOG_FILE)
else:
	import logging

	logger = logging.getLogger('browser_runtime')

# Типы для lazy imports
if TYPE_CHECKING:
	from browser_runtime.capability.engine import AutomationEngine
	from browser_runtime.capability.resolver import CapabilityResolver
	from browser_runtime.install.orchestrator import InstallationOrchestrator
	from browser_runtime.session.manager import SessionManager

# Lazy imports mapping
_LAZY_IMPORTS = {
	'SessionManager': ('browser_runtime.session.manager', 'SessionManager'),
	'CapabilityResolver': ('browser_runtime.capability.resolver', 'CapabilityResolver'),
	'AutomationEngine': ('browser_runtime.capability.engine', 'AutomationEngine'),
	'InstallationOrchestrator': ('browser_runtime.install.orchestrator', 'InstallationOrchestrator'),
}


def __getattr__(name: str):
	"""Lazy import mechanism."""
	if name in _LAZY_IMPORTS:
		module_path, attr_name = _LAZY_IMPORTS[name]
		try:
			from importlib import import_module

			module = import_module(module_path)
			attr = getattr(module, attr_name)
			globals()[name] = attr
			return attr
		except ImportError as e:
			raise ImportError(f'Failed to import {name} from {module_path}: {e}') from e
	raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
	'AutomationEngine',
	'CapabilityResolver',
	'InstallationOrchestrator',
	'SessionManager',
]
