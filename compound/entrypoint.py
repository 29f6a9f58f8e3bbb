from __future__ import annotations
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from compound.core.config import settings
from compound.core.errors import CompoundError
from compound.core.logging_config import configure_logging
from compound.runtime.host import ComponentHost


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='compound', description='Component loader')
    sub = parser.add_subparsers(dest='command', required=True)
    check = sub.add_parser('check', help='Load every component of a package and report their states.')
    check.add_argument('package', help='Importable package holding @component classes.')
    check.add_argument('--data-dir', type=Path, default=None, help='Folder configuration documents resolve against.')
    check.add_argument(
        '--log-level', type=str, default=None,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Override COMPOUND_LOG_LEVEL.',
    )
    return parser


def _check(args: argparse.Namespace) -> int:
    update = {}
    if args.data_dir is not None:
        update['data_dir'] = args.data_dir
    if args.log_level:
        update['log_level'] = args.log_level
    cfg = settings.model_copy(update=update)
    configure_logging(cfg.log_level)

    host = ComponentHost(cfg)
    try:
        report = host.enable(args.package)
    except (CompoundError, ImportError) as e:
        print(f"[compound] {e}", file=sys.stderr, flush=True)
        host.disable()
        return 1
    try:
        for record in host.records():
            reason = record.fail_reasons[0] if record.fail_reasons else ''
            line = f"{record.name}: {record.state.value}"
            if reason:
                line += f" ({reason})"
            print(line, flush=True)
        if report.deadlocked:
            print(f"deadlocked: {', '.join(report.deadlocked)}", flush=True)
    finally:
        host.disable()
    return 0 if report.ok else 1


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    if args.command == 'check':
        return _check(args)
    return 2


if __name__ == '__main__':  # pragma: no cover
    sys.exit(main())
