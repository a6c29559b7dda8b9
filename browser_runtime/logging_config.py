import logging
import sys

from dotenv import load_dotenv

load_dotenv()

from browser_runtime.config import CONFIG


def addLoggingLevel(name: str, level_value: int, method_name: str | None = None):
	"""
	Комплексно добавляет новый уровень логирования в модуль `logging` и
	текущий настроенный класс логирования.

	`name` становится атрибутом модуля `logging` со значением `level_value`.
	`method_name` становится удобным методом как для самого `logging`,
	так и для класса, возвращаемого `logging.getLoggerClass()` (обычно просто
	`logging.Logger`). Если `method_name` не указан, используется `name.lower()`.

	Выбрасывает `AttributeError`, если имя уровня или метода уже занято.

	Пример
	-------
	>>> addLoggingLevel('TRACE', logging.DEBUG - 5)
	>>> logging.getLogger(__name__).setLevel('TRACE')
	>>> logging.getLogger(__name__).trace('that worked')
	>>> logging.TRACE
	5

	"""
	if not method_name:
		method_name = name.lower()

	if hasattr(logging, name):
		raise AttributeError(f'{name} already defined in logging module')
	if hasattr(logging, method_name):
		raise AttributeError(f'{method_name} already defined in logging module')
	if hasattr(logging.getLoggerClass(), method_name):
		raise AttributeError(f'{method_name} already defined in logger class')

	def log_at_level(self, message, *args, **kwargs):
		if self.isEnabledFor(level_value):
			self._log(level_value, message, args, **kwargs)

	def log_to_root(message, *args, **kwargs):
		logging.log(level_value, message, *args, **kwargs)

	logging.addLevelName(level_value, name)
	setattr(logging, name, level_value)
	setattr(logging.getLoggerClass(), method_name, log_at_level)
	setattr(logging, method_name, log_to_root)


class RuntimeFormatter(logging.Formatter):
	"""Форматтер, который сокращает имена логгеров пакета вне режима DEBUG."""

	def __init__(self, format_string, level_value):
		super().__init__(format_string)
		self.level_value = level_value

	def format(self, log_record):
		# Очищать имена только в режиме INFO, сохранять все в режиме DEBUG
		if self.level_value > logging.DEBUG and isinstance(log_record.name, str) and log_record.name.startswith('browser_runtime.'):
			if 'SessionManager' in log_record.name:
				log_record.name = 'SessionManager'
			else:
				log_record.name = log_record.name.split('.')[-1]
		return super().format(log_record)


def setup_logging(stream=None, log_level=None, force_setup=False, debug_log_file=None, info_log_file=None):
	"""Настроить логирование для рантайма браузера.

	Args:
		stream: Поток вывода логов (по умолчанию sys.stdout)
		log_level: Уровень логирования (по умолчанию CONFIG.LOGGING_LEVEL)
		force_setup: Перенастроить, даже если обработчики уже существуют
		debug_log_file: Путь к файлу только для логов уровня debug
		info_log_file: Путь к файлу только для логов уровня info
	"""
	try:
		addLoggingLevel('RESULT', 35)  # Пропускает ERROR, FATAL и CRITICAL
	except AttributeError:
		pass  # Уровень уже существует

	level_type = (log_level or CONFIG.LOGGING_LEVEL).lower()

	# Проверить, настроены ли уже обработчики
	if logging.getLogger().hasHandlers() and not force_setup:
		return logging.getLogger('browser_runtime')

	root_logger = logging.getLogger()
	root_logger.handlers = []

	console_handler = logging.StreamHandler(stream or sys.stdout)

	if level_type == 'result':
		effective_level = 35  # Значение уровня RESULT
	elif level_type == 'debug':
		effective_level = logging.DEBUG
	else:
		effective_level = logging.INFO

	if level_type == 'result':
		console_handler.setLevel('RESULT')
		console_handler.setFormatter(RuntimeFormatter('%(message)s', effective_level))
	else:
		console_handler.setLevel(effective_level)
		console_handler.setFormatter(RuntimeFormatter('%(levelname)-8s [%(name)s] %(message)s', effective_level))

	root_logger.addHandler(console_handler)

	file_handler_list = []

	if debug_log_file:
		debug_file_handler = logging.FileHandler(debug_log_file, encoding='utf-8')
		debug_file_handler.setLevel(logging.DEBUG)
		debug_file_handler.setFormatter(RuntimeFormatter('%(asctime)s - %(levelname)-8s [%(name)s] %(message)s', logging.DEBUG))
		file_handler_list.append(debug_file_handler)
		root_logger.addHandler(debug_file_handler)

	if info_log_file:
		info_file_handler = logging.FileHandler(info_log_file, encoding='utf-8')
		info_file_handler.setLevel(logging.INFO)
		info_file_handler.setFormatter(RuntimeFormatter('%(asctime)s - %(levelname)-8s [%(name)s] %(message)s', logging.INFO))
		file_handler_list.append(info_file_handler)
		root_logger.addHandler(info_file_handler)

	# Корневой логгер пишет DEBUG, если включен файл debug
	final_log_level = logging.DEBUG if debug_log_file else effective_level
	root_logger.setLevel(final_log_level)

	main_logger = logging.getLogger('browser_runtime')
	main_logger.propagate = False  # Не распространять на корневой логгер
	main_logger.addHandler(console_handler)
	for file_handler in file_handler_list:
		main_logger.addHandler(file_handler)
	main_logger.setLevel(final_log_level)

	# Логгер bubus: события сессии видны на уровне INFO
	bubus_main_logger = logging.getLogger('bubus')
	bubus_main_logger.propagate = False
	bubus_main_logger.addHandler(console_handler)
	for file_handler in file_handler_list:
		bubus_main_logger.addHandler(file_handler)
	bubus_main_logger.setLevel(logging.INFO if level_type == 'result' else final_log_level)

	# Заглушить логгеры сторонних библиотек
	external_logger_names = [
		'playwright',
		'asyncio',
		'urllib3',
		'pip',
	]
	for external_logger_name in external_logger_names:
		external_logger = logging.getLogger(external_logger_name)
		external_logger.setLevel(logging.ERROR)
		external_logger.propagate = False

	return main_logger
