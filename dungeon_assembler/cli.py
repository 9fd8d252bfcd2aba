"""
Command line front end: generate one layout and write its debug exports.

Exit codes: 0 when the layout reached SUCCESS, 2 for PARTIAL_SUCCESS or
STALLED, 1 for configuration, I/O or strict audit errors.
"""

import argparse
import logging
import sys
from typing import List, Optional

from dungeon_assembler.generators.layout.layout_engine import GenerationStatus
from dungeon_assembler.generators.templates import CATALOG_REGISTRY
from dungeon_assembler.pipeline.automated_pipeline import (
    EXPORT_FORMATS,
    AutomatedPipeline,
    PipelineError,
    PipelineSettings,
)
from dungeon_assembler.validation.core import ValidationError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INCOMPLETE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dungeon-assembler",
        description="Assemble a dungeon layout from prefabricated rooms",
    )
    parser.add_argument("--catalog", default="crypt", help="Name of a built-in room catalog")
    parser.add_argument("--catalog-file", help="JSON room catalog (overrides --catalog)")
    parser.add_argument("--rooms", type=int, default=10,
                        help="Total rooms to place, start and destination included")
    parser.add_argument("--tolerance", type=float, default=0.2,
                        help="Door direction snapping tolerance")
    parser.add_argument("--seed", type=int, help="Seed for reproducible layouts")
    parser.add_argument("--match-local-direction", action="store_true",
                        help="Only try doors whose unrotated direction opposes the open door")
    parser.add_argument("--output-dir", default="output/layouts", help="Directory to save exports")
    parser.add_argument("--name", default="generated_layout", help="Base name of export files")
    parser.add_argument(
        "--format",
        default="json",
        choices=["json", "dot", "both", "none"],
        help="Export format",
    )
    parser.add_argument("--strict", action="store_true",
                        help="Fail when the post-generation audit finds errors")
    parser.add_argument("--list-catalogs", action="store_true",
                        help="List built-in catalogs and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _export_formats(choice: str):
    if choice == "both":
        return EXPORT_FORMATS
    if choice == "none":
        return ()
    return (choice,)


def _list_catalogs():
    for name in CATALOG_REGISTRY.list_catalogs():
        catalog = CATALOG_REGISTRY.get_catalog(name)
        print(f"{name:12s} {len(catalog.rooms):2d} rooms  {catalog.description}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.list_catalogs:
        _list_catalogs()
        return EXIT_OK

    settings = PipelineSettings(
        catalog_name=args.catalog,
        catalog_file=args.catalog_file,
        total_rooms=args.rooms,
        door_snap_tolerance=args.tolerance,
        match_local_direction=args.match_local_direction,
        seed=args.seed,
        output_dir=args.output_dir,
        map_name=args.name,
        export_formats=_export_formats(args.format),
        strict=args.strict,
    )

    try:
        result = AutomatedPipeline(settings).generate()
    except PipelineError as e:
        logger.error("%s", e)
        return EXIT_ERROR
    except ValidationError as e:
        logger.error("Layout audit failed:\n%s", e.result.report())
        return EXIT_ERROR

    if not result.success:
        for error in result.errors:
            logger.error("%s", error)
        return EXIT_ERROR

    layout = result.layout
    print(f"Status: {result.status.value}")
    print(f"Seed: {result.seed}")
    print(f"Rooms: {layout.room_count}/{args.rooms} "
          f"(destination {'placed' if layout.destination_placed else 'missing'})")
    print(f"Connections: {len(layout.connections)}")
    for path in result.output_files:
        print(f"Wrote {path}")

    return EXIT_OK if result.status == GenerationStatus.SUCCESS else EXIT_INCOMPLETE


if __name__ == "__main__":
    sys.exit(main())
