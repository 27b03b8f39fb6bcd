import argparse
import logging
import sys
from pathlib import Path

from . import config
from .core import PhotoRepository
from .exceptions import PhotoRepoError
from .reporting import ReportGenerator

def setup_logging(output_dir: Path, verbose: bool):
    """Sets up logging to both console and a file in the output directory."""
    log_level = logging.DEBUG if verbose else logging.INFO
    log_file = output_dir / config.LOG_FILENAME

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.FileHandler(log_file, encoding='utf-8'),
            logging.StreamHandler(sys.stdout)
        ]
    )

def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Photo Repo: filtered, linked views of a photo collection")

    p.add_argument("output", type=Path, help="Output directory holding the links and the cache (must exist)")

    p.add_argument("--ingest", type=Path, action="append", default=[], metavar="DIR",
                   help="Add a source directory to scan (repeatable)")
    p.add_argument("--require", action="append", default=[], metavar="TAG",
                   help="Only link photos carrying this tag (repeatable, all must match)")
    p.add_argument("--disallow", action="append", default=[], metavar="TAG",
                   help="Never link photos carrying this tag (repeatable)")
    p.add_argument("--expr", action="append", default=[], metavar="EXPR",
                   help="Boolean tag expression, e.g. 'beach & !work' (repeatable)")
    p.add_argument("--order", choices=config.ORDER_VALUES, default=None, help="Link order")
    p.add_argument("--link-type", default=None,
                   help=f"One of: {', '.join(config.LINK_TYPE_ALIASES)}")

    p.add_argument("--dismiss-cache-error", action="store_true",
                   help="Start from defaults if the cache cannot be loaded, and overwrite it")
    p.add_argument("--no-update", action="store_true",
                   help="Only store the configuration; do not rescan or relink")
    p.add_argument("--report", type=Path, default=None, metavar="CSV",
                   help="Write a CSV of the generated links after updating")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    return p.parse_args(argv)

def configure(repo: PhotoRepository, args: argparse.Namespace):
    """Applies the CLI options to the repository. Raises on any invalid value."""
    for d in args.ingest:
        if not d.is_dir():
            raise PhotoRepoError(f"Ingest directory does not exist: {d}")
        repo.add_ingest_dir(d.resolve())

    if args.require or args.disallow or args.expr:
        repo.add_filter(required=args.require, disallowed=args.disallow, bool_expr=args.expr)
    if args.order:
        repo.set_order(args.order)
    if args.link_type:
        repo.set_link_type(args.link_type)

def main(argv=None):
    args = parse_args(argv)

    # 1. Setup
    output_dir = args.output.resolve()
    if not output_dir.is_dir():
        print(f"Output directory does not exist: {output_dir}", file=sys.stderr)
        return 1

    setup_logging(output_dir, args.verbose)
    logging.info("=== Photo Repo Started ===")
    logging.info(f"Output: {output_dir}")

    # 2. Execution
    try:
        repo = PhotoRepository(output_dir)
        if repo.load_error is not None:
            if not args.dismiss_cache_error:
                logging.error("Cache could not be loaded. Fix it or rerun with --dismiss-cache-error.")
                return 1
            repo.dismiss_load_error()

        configure(repo, args)

        if args.no_update:
            repo.save()
        else:
            repo.update()
            if args.report:
                ReportGenerator(repo).write_link_report(args.report)
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        return 1
    except PhotoRepoError as e:
        logging.error(str(e))
        return 1
    except Exception:
        logging.exception("Fatal error during update.")
        return 1

    logging.info("Done.")
    return 0

if __name__ == "__main__":
    sys.exit(main())
