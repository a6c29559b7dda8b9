"""Фиксированная конфигурация запуска браузера и контекста."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

BROWSER_WINDOW_SIZE = {'width': 1024, 'height': 1024}

CHROME_NO_SANDBOX_ARGS = [
	'--no-sandbox',
	'--disable-setuid-sandbox',
]

CHROME_WINDOW_ARGS = [
	f'--window-size={BROWSER_WINDOW_SIZE["width"]},{BROWSER_WINDOW_SIZE["height"]}',
]


class BrowserLaunchArgs(BaseModel):
	"""Аргументы BrowserType.launch() в playwright."""

	model_config = ConfigDict(extra='forbid', frozen=True)

	headless: bool = Field(default=False, description='Видимое окно браузера, а не headless-режим.')
	chromium_sandbox: bool = Field(default=False)
	args: list[str] = Field(default_factory=lambda: [*CHROME_NO_SANDBOX_ARGS, *CHROME_WINDOW_ARGS])

	def to_playwright_kwargs(self) -> dict[str, Any]:
		return self.model_dump()


class BrowserNewContextArgs(BaseModel):
	"""Аргументы Browser.new_context() в playwright."""

	model_config = ConfigDict(extra='forbid', frozen=True)

	# Размер страницы определяется нативным окном, а не эмулированным viewport
	no_viewport: bool = Field(default=True)

	def to_playwright_kwargs(self) -> dict[str, Any]:
		return self.model_dump()


DEFAULT_LAUNCH_ARGS = BrowserLaunchArgs()
DEFAULT_CONTEXT_ARGS = BrowserNewContextArgs()
