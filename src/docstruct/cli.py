"""
Command-line interface for the document structure pipeline.

Usage:
    docstruct --input <fragments.json|folder> --output <output_dir> [options]

Examples:
    # Reconstruct structure and export every format
    docstruct --input page.json --output ./output --format all

    # Process a folder of per-page fragment files on 8 threads
    docstruct --input ./pages --output ./output --workers 8

    # Re-render a previously saved document.json as Markdown
    docstruct --input ./output/document.json --output ./rendered --format markdown
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from . import __version__

logger = logging.getLogger("docstruct")


def setup_argparser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="docstruct",
        description="Document structure reconstruction - rebuild headings, paragraphs, "
                    "tables, lists and links from positioned text fragments",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Reconstruct a page and export all formats:
    docstruct --input page.json --output ./output --format all

  Process only specific pages:
    docstruct --input pages.json --output ./output --pages 1-3,5
        """
    )

    # Required arguments
    parser.add_argument(
        "--input", "-i",
        required=True,
        help="Fragment JSON file, folder of fragment files, or a saved document.json"
    )

    parser.add_argument(
        "--output", "-o",
        required=True,
        help="Output directory for generated files"
    )

    # Optional arguments
    parser.add_argument(
        "--format", "-f",
        nargs="+",
        default=["json", "markdown"],
        choices=["json", "markdown", "html", "text", "docx", "all"],
        help="Output format(s) (default: json markdown)"
    )

    parser.add_argument(
        "--pages",
        type=str,
        default=None,
        help="Page range to process, e.g., '1-5' or '1,3,5' (default: all)"
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Pages processed in parallel (default: 4, or DOCSTRUCT_WORKERS)"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Debug logging and full tracebacks (or DOCSTRUCT_DEBUG=true)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress non-error output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def print_summary(document, input_path: Path, output_dir: Path, elapsed: float):
    metrics = document.metrics or {}
    fragments = metrics.get("fragments", {})

    print("\n" + "=" * 60)
    print("DOCUMENT STRUCTURE RECONSTRUCTION COMPLETE")
    print("=" * 60)
    print(f"Source: {input_path}")
    print(f"Output: {output_dir}")
    print(f"Pages: {document.page_count}")
    print(f"Processing time: {elapsed:.2f}s")
    print()
    print("Structure:")
    print(f"  Headings: {len(document.all_headings)}")
    print(f"  Paragraphs: {sum(len(p.paragraphs) for p in document.pages)}")
    print(f"  Tables: {len(document.all_tables)}")
    print(f"  Lists: {len(document.all_lists)}")
    print(f"  Links: {len(document.all_links)}")
    if metrics:
        print()
        print("Metrics:")
        print(f"  Global confidence: {metrics.get('global_confidence', 0.0):.2%}")
        print(f"  Page coverage: {metrics.get('coverage_pct', 0.0):.1f}%")
        print(f"  Fragments: {fragments.get('total', 0)} "
              f"(high: {fragments.get('high_confidence', 0)}, "
              f"low: {fragments.get('low_confidence', 0)})")
    print("=" * 60)


def run_pipeline(args, config=None) -> int:
    """Run the document structure pipeline."""
    from .assembler import DocumentAssembler
    from .config import get_config
    from .document import MultiPageDocument
    from .export import DocumentExporter
    from .io import detect_input_type, ensure_dir, load_json, load_pages, select_pages

    start_time = time.time()

    output_dir = ensure_dir(args.output)
    input_path = Path(args.input)

    if not input_path.exists():
        logger.error(f"Input not found: {input_path}")
        return 1

    input_type = detect_input_type(input_path)
    logger.info(f"Input type detected: {input_type}")

    config = config or get_config()
    if args.workers is not None:
        config.workers = args.workers

    if input_type == "document":
        document = MultiPageDocument.from_dict(load_json(input_path))
        if args.pages:
            selected = select_pages(list(range(document.page_count)), args.pages)
            document = MultiPageDocument(
                pages=[document.pages[i] for i in selected],
                metrics=document.metrics,
                id=document.id
            )
    elif input_type in ("fragments", "fragment_folder"):
        pages = select_pages(load_pages(input_path), args.pages)
        if not pages:
            logger.error("No pages to process")
            return 1

        logger.info(f"Processing {len(pages)} page(s)...")
        assembler = DocumentAssembler(config)
        document = assembler.process_document(
            [p.fragments for p in pages],
            sizes=[p.size for p in pages]
        )
    else:
        logger.error(f"Unsupported input type: {input_type}")
        return 1

    formats = list(args.format)
    if "json" not in formats and "all" not in formats:
        # document.json is always written
        formats.append("json")

    exporter = DocumentExporter(output_dir, "document", config.export)
    for fmt, path in exporter.export(document, formats).items():
        logger.info(f"Exported {fmt}: {path}")

    if not args.quiet:
        print_summary(document, input_path, output_dir, time.time() - start_time)

    return 0


def main(argv=None):
    """Main entry point."""
    from .config import get_config

    parser = setup_argparser()
    args = parser.parse_args(argv)

    config = get_config()
    if args.debug:
        config.debug_mode = True

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Configure logging level
    if args.verbose or config.debug_mode:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.ERROR)

    try:
        exit_code = run_pipeline(args, config)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if config.debug_mode:
            raise
        sys.exit(1)


if __name__ == "__main__":
    main()
