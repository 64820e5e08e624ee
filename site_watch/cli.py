# === FILE: site_watch/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска монитора SiteWatch через командную строку.

Команды:
  run       Запустить непрерывный мониторинг по конфигу
  check     Однократно проверить URL и вывести результат
  config    Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования

Команда run опции:
  --duration SEC      Остановиться через SEC секунд (по умолчанию — до Ctrl+C)

Команда check опции:
  URL...              Проверяемые URL (по умолчанию — target_urls из конфига)
  --json              Вывести результат в JSON

Пример:
  site-watch --config configs/default.yaml run
"""
import asyncio
import contextlib
import json
import signal
import sys
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError

from site_watch import __version__
from site_watch.config import MonitorConfig, load_config
from site_watch.engine import Monitor, check_once
from site_watch.logger import DEFAULT_FORMAT, configure
from site_watch.utils import is_http_url, remove_duplicates

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def _load(ctx) -> MonitorConfig:
    if ctx.obj.get('config') is None:
        try:
            ctx.obj['config'] = load_config(ctx.obj['config_path'])
        except (OSError, ValueError, TypeError, ValidationError) as e:
            print_error(f'Ошибка загрузки конфигурации: {e}')
    return ctx.obj['config']


async def serve(cfg: MonitorConfig, duration: Optional[float]) -> None:
    monitor = Monitor(cfg)
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # add_signal_handler is unavailable on Windows
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, monitor.request_stop)
    await monitor.run(duration)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteWatch, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default='configs/default.yaml',
    show_default=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд SiteWatch CLI."""
    configure(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path
    ctx.obj.setdefault('config', None)


@cli.command('run', context_settings=CONTEXT_SETTINGS)
@click.option(
    '--duration', 'duration',
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help='Остановить мониторинг через указанное число секунд'
)
@click.pass_context
def run(ctx, duration):
    """Запустить непрерывный мониторинг до Ctrl+C / SIGTERM."""
    cfg = _load(ctx)
    click.echo(f'Monitoring {len(cfg.target_urls)} URL(s), Ctrl+C to stop')
    try:
        asyncio.run(serve(cfg, duration))
    except KeyboardInterrupt:
        pass


@cli.command('check', context_settings=CONTEXT_SETTINGS)
@click.argument('urls', nargs=-1)
@click.option('--json', 'as_json', is_flag=True, help='Вывести результат в JSON')
@click.pass_context
def check(ctx, urls, as_json):
    """Однократно проверить URL; код выхода 1, если есть нездоровые."""
    bad = [u for u in urls if not is_http_url(u)]
    if bad:
        print_error(f'Некорректный URL: {", ".join(bad)}')
    if urls and not Path(ctx.obj['config_path']).is_file():
        cfg = MonitorConfig(target_urls=list(urls))
    else:
        cfg = _load(ctx)

    results = asyncio.run(check_once(cfg, remove_duplicates(urls) or None))

    if as_json:
        click.echo(json.dumps(
            {url: outcome.as_dict() for url, outcome in results.items()},
            ensure_ascii=False, indent=2
        ))
    else:
        for url, outcome in results.items():
            mark = 'OK  ' if outcome.healthy else 'FAIL'
            click.echo(f'{mark} {url} {outcome.describe()}')

    if any(not o.healthy for o in results.values()):
        sys.exit(1)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON (секреты скрыты)."""
    cfg = _load(ctx)
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
