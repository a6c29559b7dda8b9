"""Командная строка для установки playwright и ручной проверки сессии браузера"""

import argparse
import asyncio
import sys
from pathlib import Path

from browser_runtime.capability.resolver import CapabilityResolver
from browser_runtime.config import CONFIG
from browser_runtime.exceptions import BrowserRuntimeError
from browser_runtime.install.orchestrator import InstallationOrchestrator
from browser_runtime.session.manager import SessionManager


def print_progress(progress_text: str) -> None:
	"""Печатать только последнюю строку накопленного прогресса."""
	lines = progress_text.rstrip('\n').splitlines()
	if lines:
		print(f'📦 {lines[-1]}', flush=True)


async def run_install(target: Path | None) -> None:
	target_dir = target or CONFIG.DEPENDENCIES_DIR
	await InstallationOrchestrator().install(target_dir, print_progress)
	print(f'✅ Playwright установлен в {target_dir}')


async def run_resolve() -> None:
	engine = await CapabilityResolver().resolve(print_progress)
	try:
		await engine.start()
		print(f'Стратегия: {engine.source}')
		if engine.location:
			print(f'Расположение: {engine.location}')
		print(f'Chromium: {engine.executable_identity()}')
	finally:
		await engine.stop()


async def run_open(url: str) -> None:
	async with SessionManager() as manager:
		page = await manager.acquire_page(print_progress)
		await page.goto(url)
		print(f'🌐 Открыто {url}. Закройте окно браузера или нажмите Ctrl+C для выхода.')

		closed = asyncio.Event()
		page.on('close', lambda _: closed.set())
		if manager.browser is not None:
			manager.browser.on('disconnected', lambda _: closed.set())
		await closed.wait()


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
		prog='browser-runtime',
		description='Управление сессией браузера и установкой playwright',
		formatter_class=argparse.RawDescriptionHelpFormatter,
		epilog="""
Примеры использования:
  browser-runtime install
  browser-runtime install --target ./deps
  browser-runtime resolve
  browser-runtime open https://example.com
		""",
	)
	subparsers = parser.add_subparsers(dest='command', required=True)

	install_parser = subparsers.add_parser('install', help='Установить playwright и Chromium в управляемую директорию')
	install_parser.add_argument(
		'--target',
		type=Path,
		default=None,
		help='Директория установки (по умолчанию BROWSER_RUNTIME_DEPENDENCIES_DIR)',
	)

	subparsers.add_parser('resolve', help='Показать, откуда будет получен playwright')

	open_parser = subparsers.add_parser('open', help='Открыть видимый браузер на указанном адресе')
	open_parser.add_argument('url', nargs='?', default='about:blank', help='Адрес для открытия')

	return parser


def main(argv: list[str] | None = None) -> int:
	"""Главная функция"""
	args = build_parser().parse_args(argv)

	if args.command == 'install':
		coroutine = run_install(args.target)
	elif args.command == 'resolve':
		coroutine = run_resolve()
	else:
		coroutine = run_open(args.url)

	try:
		asyncio.run(coroutine)
	except KeyboardInterrupt:
		print('\n\n👋 Выход из программы...\n')
		return 130
	except BrowserRuntimeError as e:
		print(f'\n❌ {e}\n', file=sys.stderr)
		return 1
	return 0


if __name__ == '__main__':
	sys.exit(main())
