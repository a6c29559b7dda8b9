"""Конфигурация рантайма браузера на основе переменных окружения."""

import logging
import os
import sys
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class FlatEnvConfig(BaseSettings):
	"""Все переменные окружения в плоском пространстве имен."""

	model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', case_sensitive=True, extra='allow')

	# Логирование
	BROWSER_RUNTIME_LOGGING_LEVEL: str = Field(default='info')
	BROWSER_RUNTIME_DEBUG_LOG_FILE: str | None = Field(default=None)
	BROWSER_RUNTIME_INFO_LOG_FILE: str | None = Field(default=None)
	BROWSER_RUNTIME_SETUP_LOGGING: bool = Field(default=True)

	# Конфигурация путей
	XDG_CONFIG_HOME: str = Field(default='~/.config')
	BROWSER_RUNTIME_CONFIG_DIR: str | None = Field(default=None)
	BROWSER_RUNTIME_DEPENDENCIES_DIR: str | None = Field(default=None)
	BROWSER_RUNTIME_PROJECT_DIR: str | None = Field(default=None)

	# Интерпретатор, которым ставится управляемая копия playwright
	BROWSER_RUNTIME_PYTHON: str | None = Field(default=None)


class Config:
	"""Конфигурация, которая перечитывает переменные окружения при каждом доступе.

	Простые значения проксируются к свежему экземпляру FlatEnvConfig,
	пути дополнительно разворачиваются и приводятся к абсолютному виду.
	"""

	def __getattr__(self, attribute_name: str) -> Any:
		# Специальная обработка внутренних атрибутов
		if attribute_name.startswith('_'):
			raise AttributeError(f"'{self.__class__.__name__}' object has no attribute '{attribute_name}'")

		env_config_instance = FlatEnvConfig()
		if hasattr(env_config_instance, attribute_name):
			return getattr(env_config_instance, attribute_name)

		raise AttributeError(f"'{self.__class__.__name__}' object has no attribute '{attribute_name}'")

	@property
	def LOGGING_LEVEL(self) -> str:
		return FlatEnvConfig().BROWSER_RUNTIME_LOGGING_LEVEL.lower()

	@property
	def DEBUG_LOG_FILE(self) -> str | None:
		return FlatEnvConfig().BROWSER_RUNTIME_DEBUG_LOG_FILE

	@property
	def INFO_LOG_FILE(self) -> str | None:
		return FlatEnvConfig().BROWSER_RUNTIME_INFO_LOG_FILE

	# Конфигурация путей
	@property
	def XDG_CONFIG_PATH(self) -> Path:
		return Path(FlatEnvConfig().XDG_CONFIG_HOME).expanduser().resolve()

	@property
	def CONFIG_DIR(self) -> Path:
		env_config_instance = FlatEnvConfig()
		if env_config_instance.BROWSER_RUNTIME_CONFIG_DIR:
			return Path(env_config_instance.BROWSER_RUNTIME_CONFIG_DIR).expanduser().resolve()
		return self.XDG_CONFIG_PATH / 'browser_runtime'

	@property
	def DEPENDENCIES_DIR(self) -> Path:
		"""Управляемая директория, куда при необходимости ставится playwright.

		Директория не создаётся здесь: её создаёт установщик, когда она действительно нужна.
		"""
		env_config_instance = FlatEnvConfig()
		if env_config_instance.BROWSER_RUNTIME_DEPENDENCIES_DIR:
			return Path(env_config_instance.BROWSER_RUNTIME_DEPENDENCIES_DIR).expanduser().resolve()
		return self.CONFIG_DIR / 'dependencies'

	@property
	def PROJECT_DIR(self) -> Path:
		project_directory = FlatEnvConfig().BROWSER_RUNTIME_PROJECT_DIR
		if project_directory:
			return Path(project_directory).expanduser().resolve()
		return Path(os.getcwd()).resolve()

	@property
	def PYTHON_EXECUTABLE(self) -> str:
		return FlatEnvConfig().BROWSER_RUNTIME_PYTHON or sys.executable


# Create singleton instance
CONFIG = Config()
