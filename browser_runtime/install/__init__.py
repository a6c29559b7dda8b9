"""Установка playwright в управляемую директорию."""

from browser_runtime.install.orchestrator import (
	MANIFEST_FILENAME,
	InstallationOrchestrator,
	InstallStep,
	spawn_process,
)
from browser_runtime.install.progress import ProgressLog, ProgressSink

__all__ = [
	'MANIFEST_FILENAME',
	'InstallationOrchestrator',
	'InstallStep',
	'ProgressLog',
	'ProgressSink',
	'spawn_process',
]
