"""Command line entry point for copying translations onto embedded hashes.

Usage:
    python scripts/copy_translations.py --mode listcolumns
    python scripts/copy_translations.py --mode dryrun --file columns.json
    python scripts/copy_translations.py --mode process --file columns.json

``columns.json`` maps table names to the columns to reconcile, usually a
trimmed copy of the ``listcolumns`` output.
"""

import argparse
import json
import logging
import os
import sys

from transfilter.services.cache import get_resolution_cache
from transfilter.services.reconciler import (
    ColumnDefinitionError,
    Reconciler,
    UnknownColumnError,
    discover_columns,
    load_column_definition,
)

MODES = ('listcolumns', 'dryrun', 'process')


def _setup_logging() -> None:
    if logging.getLogger().hasHandlers():
        return
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='copy_translations',
        description=(
            'Copy translations recorded for the current text of rich-text columns '
            'onto the translation hash embedded in that text.'
        ),
    )
    parser.add_argument('-m', '--mode', required=True, choices=MODES,
                        help='listcolumns: print translatable columns as JSON; '
                             'dryrun: report copies only; process: copy and commit.')
    parser.add_argument('-f', '--file', help='JSON file mapping tables to columns (dryrun/process).')
    return parser


def run(args, app, out=None) -> int:
    out = out or sys.stdout

    def echo(line=''):
        print(line, file=out)

    with app.app_context():
        if args.mode == 'listcolumns':
            echo(json.dumps(discover_columns(), indent=4))
            return 0

        try:
            columns_by_table = load_column_definition(args.file)
        except ColumnDefinitionError as e:
            print(str(e), file=sys.stderr)
            return 1

        reconciler = Reconciler(
            dry_run=args.mode == 'dryrun',
            config=app.config,
            cache=get_resolution_cache(app),
            echo=echo,
        )
        try:
            report = reconciler.run(columns_by_table)
        except UnknownColumnError as e:
            print(str(e), file=sys.stderr)
            return 1

        verb = 'Would copy' if report.dry_run else 'Copied'
        echo(f"{verb} {len(report.copies)} translation(s) across {len(report.tables)} table(s).")
        return 0


def main(argv=None, app=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging()

    if app is None:
        from transfilter import create_app
        app = create_app(os.getenv('FLASK_ENV', 'development'))

    return run(args, app)


if __name__ == '__main__':
    sys.exit(main())
