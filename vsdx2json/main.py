"""
CLI entry point

Extracts shape graphs from Visio .vsdx files to JSON/CSV
"""
import sys
import argparse
import logging
from pathlib import Path
from typing import List

from vsdx2json.analysis import summarize
from vsdx2json.config import POSITION_EDGE_TOLERANCE, ExtractionConfig
from vsdx2json.logger import ExtractionLogger
from vsdx2json.pipeline import process_documents


def collect_inputs(inputs: List[str]) -> List[Path]:
    """Expand directories to the .vsdx files they contain"""
    paths: List[Path] = []
    for item in inputs:
        path = Path(item)
        if path.is_dir():
            paths.extend(sorted(path.glob("*.vsdx")))
        else:
            paths.append(path)
    return paths


def main():
    """Main function"""
    parser = argparse.ArgumentParser(
        description='Extract shapes, connectors, connection points and layers from Visio files',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  vsdx2json diagram.vsdx
  vsdx2json Documents/ -o out/
  vsdx2json diagram.vsdx --no-csv --analyze
  vsdx2json diagram.vsdx --dump-xml -v
        """
    )
    parser.add_argument('inputs', nargs='*', type=str,
                        help='Input .vsdx files or directories (default: ./Documents)')
    parser.add_argument('-o', '--output-dir', dest='output_dir', type=str, default=None,
                        help='Directory for output files (default: beside each input)')
    parser.add_argument('--no-json', dest='export_json', action='store_false',
                        help='Do not write the <name>.json shape graph')
    parser.add_argument('--no-csv', dest='export_csv', action='store_false',
                        help='Do not write the <name>_export.csv staging table')
    parser.add_argument('--no-masters', dest='export_masters', action='store_false',
                        help='Do not write the <name>_masters.json stencil export')
    parser.add_argument('--dump-xml', dest='dump_xml', action='store_true',
                        help='Write every XML part to <name>_XML/')
    parser.add_argument('--inherit-master-size', dest='inherit_master_size', action='store_true',
                        help='Use the master default size for shapes without their own Width/Height')
    parser.add_argument('-a', '--analyze', action='store_true',
                        help='Display relationship analysis after extraction')
    parser.add_argument('--position-tolerance', dest='position_tolerance', type=float,
                        default=POSITION_EDGE_TOLERANCE,
                        help='Edge band (fraction of width/height) for connection point positions in --analyze')
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    verbosity.add_argument('-q', '--quiet', action='store_true', help='Only log warnings and errors')

    args = parser.parse_args()

    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    logger = ExtractionLogger(level=level)

    config = ExtractionConfig(
        export_json=args.export_json,
        export_csv=args.export_csv,
        export_masters=args.export_masters,
        dump_xml=args.dump_xml,
        inherit_master_size=args.inherit_master_size,
        output_dir=args.output_dir,
        position_tolerance=args.position_tolerance,
    )

    if args.inputs:
        paths = collect_inputs(args.inputs)
    else:
        documents = Path.cwd() / "Documents"
        paths = sorted(documents.glob("*.vsdx")) if documents.is_dir() else []
    if not paths:
        print("No VSDX files found to process.")
        sys.exit(1)

    batch = process_documents(paths, logger=logger, config=config)

    for result in batch.results:
        print(f"Processed {result.document_id} ({len(result.records)} shapes)")
        for output in result.outputs:
            print(f"  -> {output}")
        if args.analyze:
            print(summarize(result.graph, config.position_tolerance))

    # Display warnings
    warnings = logger.get_warnings()
    if warnings:
        print(f"\nWarnings ({len(warnings)}):")
        for warning in warnings:
            print(f"  - {warning.message}")

    if batch.failures:
        print(f"\nFailed ({len(batch.failures)}):")
        for failure in batch.failures:
            print(f"  - {failure}")
        sys.exit(1)


if __name__ == "__main__":
    main()
