"""Накопительный журнал прогресса установки."""

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

ProgressSink = Callable[[str], None]


class ProgressLog:
	"""Накапливает строки прогресса и отдаёт их приёмнику вызывающей стороны.

	Приёмник получает весь накопленный текст при каждом добавлении строки,
	поэтому последняя полученная строка всегда описывает всю установку целиком.
	Без приёмника каждая новая строка уходит в debug-лог.
	"""

	def __init__(self, sink: ProgressSink | None = None, fallback_logger: logging.Logger | None = None):
		self._sink = sink
		self._logger = fallback_logger or logger
		self.lines: list[str] = []

	@property
	def text(self) -> str:
		return ''.join(f'{line}\n' for line in self.lines)

	def append(self, line: str) -> None:
		self.lines.append(line)
		if self._sink is not None:
			self._sink(self.text)
		else:
			self._logger.debug(line)

	def __len__(self) -> int:
		return len(self.lines)
