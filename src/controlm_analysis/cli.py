"""
Command-line interface.

Subcommands:
    analyze        Score a Control-M XML export and write migration reports
    export-sqlite  Load a Control-M XML export into the SQLite catalog
    serve          Run the catalog query API
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .analysis.pipeline import AnalysisPipeline
from .config import get_config
from .errors import ControlMAnalysisError
from .parsers.controlm_parser import ControlMParser
from .reporting import (
    export_csv,
    export_json,
    export_markdown,
    generate_html_report,
    print_summary,
)
from .storage.catalog_store import CatalogStore

logger = logging.getLogger(__name__)

FORMATS = ["json", "csv", "html", "markdown", "all"]


def setup_logging(debug: bool = False):
    level_name = 'DEBUG' if debug else str(get_config().get('logging', 'level', default='INFO')).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    logging.getLogger('controlm_analysis').setLevel(getattr(logging, level_name, logging.INFO))


def write_reports(result, output_dir: Path, fmt: str) -> List[Path]:
    """Write the requested report formats into output_dir."""
    output_dir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []

    if fmt in ("json", "all"):
        written.append(export_json(result, output_dir / "analysis.json"))
    if fmt in ("csv", "all"):
        written.extend(export_csv(result, output_dir / "analysis.csv"))
    if fmt in ("markdown", "all"):
        written.append(export_markdown(result, output_dir / "analysis.md"))
    if fmt in ("html", "all"):
        written.append(Path(generate_html_report(result, output_dir / "analysis.html")))
    return written


def cmd_analyze(args) -> int:
    print(f"\n🔍 Control-M to Airflow Migration Analyzer")
    print(f"   Analyzing: {args.input}")
    print()

    folders = ControlMParser().parse_file(args.input)
    result = AnalysisPipeline().run(folders)

    if result.total_jobs == 0:
        print("⚠️  No jobs found in the input file")
        return 0

    print_summary(result)
    if result.has_cycle:
        print("\n⚠️  Circular dependencies detected: resolve them before migrating the affected jobs")

    output_dir = Path(args.output)
    for path in write_reports(result, output_dir, args.format):
        print(f"📄 Report written to: {path}")

    print(f"\n✨ Analysis complete: {result.total_jobs} jobs in {len(result.waves)} migration waves")
    return 0


def cmd_export_sqlite(args) -> int:
    print(f"\n🗄️  Exporting {args.input} to {args.output}")

    folders = ControlMParser().parse_file(args.input)
    with CatalogStore(args.output) as store:
        job_count = store.export_folders(folders)
        stats = store.get_statistics()

    print(f"✅ Exported {job_count} jobs")
    print("\n📈 Catalog Statistics:")
    for key, count in stats.items():
        print(f"   {key.replace('_', ' ').title()}: {count}")
    return 0


def cmd_serve(args) -> int:
    from .api.server import run_server

    run_server(args.database, host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    config = get_config()

    parser = argparse.ArgumentParser(
        prog="controlm-analysis",
        description="Analyze Control-M job catalogs for Airflow migration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s analyze -i export.xml                  Write all reports to ./output
  %(prog)s analyze -i export.xml -f json -o out   JSON report only
  %(prog)s export-sqlite -i export.xml -o ctm.db  Build the catalog database
  %(prog)s serve -d ctm.db --port 8080            Serve the query API
        """
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Analyze jobs and write migration reports")
    analyze.add_argument("-i", "--input", required=True, help="Control-M XML export (.xml or .xml.gz)")
    analyze.add_argument(
        "-o", "--output",
        default=config.get('output', 'output_dir', default='output'),
        help="Output directory (default: output)"
    )
    analyze.add_argument(
        "-f", "--format",
        choices=FORMATS,
        default=config.get('output', 'format', default='all'),
        help="Report format (default: all)"
    )
    analyze.set_defaults(func=cmd_analyze)

    export = subparsers.add_parser("export-sqlite", help="Load jobs into the SQLite catalog")
    export.add_argument("-i", "--input", required=True, help="Control-M XML export (.xml or .xml.gz)")
    export.add_argument(
        "-o", "--output",
        default=config.get('database', 'path', default='controlm.db'),
        help="Catalog database path (default: controlm.db)"
    )
    export.set_defaults(func=cmd_export_sqlite)

    serve = subparsers.add_parser("serve", help="Run the catalog query API")
    serve.add_argument(
        "-d", "--database",
        default=config.get('database', 'path', default='controlm.db'),
        help="Catalog database path (default: controlm.db)"
    )
    serve.add_argument("--host", help="Bind address (default: 0.0.0.0)")
    serve.add_argument("--port", type=int, help="Port (default: 8080)")
    serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.debug)

    try:
        return args.func(args)
    except ControlMAnalysisError as e:
        print(f"❌ Error: {e}")
        if args.debug:
            logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    sys.exit(main())
