from __future__ import annotations

import argparse
from pathlib import Path

from loguru import logger

from catalog_roundtrip.catalog.protocols import Catalog
from catalog_roundtrip.core.config import get_log_level, get_report_dir
from catalog_roundtrip.core.errors import CatalogError
from catalog_roundtrip.core.logging import setup_logging
from catalog_roundtrip.db.connect import connect
from catalog_roundtrip.db.initialize import db_init
from catalog_roundtrip.db.product_store import PostgresProductStore, PostgresTaxonomy
from catalog_roundtrip.export.exporter import export_statistics, write_export
from catalog_roundtrip.ingest.reconciler import run_import
from catalog_roundtrip.reports.error_report import write_error_report
from catalog_roundtrip.sync.accounting import run_sync, write_sync_output


def main(argv: list[str] | None = None) -> int:
    """
    A CLI for round-tripping the product catalog through a spreadsheet file.

    The `cmd` options are:
    ## import:
    Apply the changed cells of an edited export to the catalog.
    - `--input` as the path to the edited file,
    - `--report-dir` as where the error report goes (default `CATALOG_REPORT_DIR`).

    A summary line prints upon completion, plus the report path when some cells were refused.

    ### Example import usage:
    - `catalog import --input exports/catalog.csv`

    ## sync:
    Create or update products from an accounting sheet (CSV or XLSX), keyed by serial (SKU).
    - `--input` as the path to the sheet,
    - `--report-dir` as where the error report goes (default `CATALOG_REPORT_DIR`),
    - `--output-dir` as where the touched products are written in export format (default: the report dir).

    ### Example sync usage:
    - `catalog sync --input accounting/products.xlsx`

    ## export:
    Write every live product to a file that `import` accepts back.
    - `--output` as the file to write.

    ## db:
    Database controlling commands, includes DB initialization functionality.
    - `init` is the command to (re)initialize the DB
    - `--sql` is an optional pointer to the SQL file or dir of SQL files to run.
    """
    p = argparse.ArgumentParser(prog="catalog")
    p.add_argument("--log-level", default=None, help="Log level (default: CATALOG_LOG_LEVEL or INFO).")
    sub = p.add_subparsers(dest="cmd", required=True)

    # import cmd
    imp = sub.add_parser("import", help="Import an edited catalog file (only changed cells are applied).")
    imp.add_argument("--input", required=True, help="Path to the delimited UTF-8 file.")
    imp.add_argument("--report-dir", default=None, help="Directory for the error report.")

    # sync cmd
    syn = sub.add_parser("sync", help="Sync products from an accounting sheet (created or updated by SKU).")
    syn.add_argument("--input", required=True, help="Path to the CSV or XLSX sheet.")
    syn.add_argument("--report-dir", default=None, help="Directory for the error report.")
    syn.add_argument("--output-dir", default=None, help="Directory for the file of touched products.")

    # export cmd
    exp = sub.add_parser("export", help="Export the catalog to a CSV file.")
    exp.add_argument("--output", required=True, help="Path of the CSV file to write.")

    # db cmd
    db = sub.add_parser("db", help="Database utilities.")
    db_sub = db.add_subparsers(dest="db_cmd", required=True)

    db_init_p = db_sub.add_parser("init", help="Initialize DB schema from SQL file(s).")
    db_init_p.add_argument("--sql", default="sql", help="Path to schema SQL file OR a directory of `.sql` files.")

    args = p.parse_args(argv)
    setup_logging(args.log_level or get_log_level())

    if args.cmd == "import":
        report_dir = Path(args.report_dir) if args.report_dir else get_report_dir()
        try:
            with connect() as conn:
                catalog = Catalog(store=PostgresProductStore(conn), taxonomy=PostgresTaxonomy(conn))
                result = run_import(Path(args.input), catalog=catalog)
        except CatalogError as e:
            logger.error(f"import aborted: {e}")
            print(f"import failed: {e}")
            return 1

        print(result.render_one_line())
        if result.has_errors:
            print(f"error report: {write_error_report(result.errors, report_dir)}")
        return 0

    if args.cmd == "sync":
        report_dir = Path(args.report_dir) if args.report_dir else get_report_dir()
        output_dir = Path(args.output_dir) if args.output_dir else report_dir
        try:
            with connect() as conn:
                catalog = Catalog(store=PostgresProductStore(conn), taxonomy=PostgresTaxonomy(conn))
                result = run_sync(Path(args.input), catalog=catalog)
                touched_file = write_sync_output(result, catalog, output_dir)
        except CatalogError as e:
            logger.error(f"sync aborted: {e}")
            print(f"sync failed: {e}")
            return 1

        print(result.render_one_line())
        if touched_file is not None:
            print(f"output: {touched_file}")
        if result.has_errors:
            print(f"error report: {write_error_report(result.errors, report_dir)}")
        return 0

    if args.cmd == "export":
        output = Path(args.output)
        try:
            with connect() as conn:
                catalog = Catalog(store=PostgresProductStore(conn), taxonomy=PostgresTaxonomy(conn))
                write_export(catalog, output)
                stats = export_statistics(catalog)
        except CatalogError as e:
            logger.error(f"export aborted: {e}")
            print(f"export failed: {e}")
            return 1

        counts = " ".join(f"{k}={v}" for k, v in stats.items())
        print(f"export: {counts} output={output}")
        return 0

    if args.cmd == "db" and args.db_cmd == "init":
        db_init(sql_path=Path(args.sql))
        print(f"Initialized schema from {args.sql}")
        return 0

    return 2
