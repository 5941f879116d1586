from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from rowsearch.config import load_settings
from rowsearch.logging_utils import configure_logging, log_event
from rowsearch.services.result_sink import ResultSinkError, write_rows_document
from rowsearch.services.row_search import VARIANTS, run_variant_search

logger = logging.getLogger(__name__)


def _parse_prefix(raw: str) -> list[int]:
    try:
        return [int(part) for part in raw.replace(" ", "").split(",") if part]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Prefix must be comma-separated integers, got {raw!r}.") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Enumerate twelve-tone rows and row generators with a pruned permutation search.")
    parser.add_argument("--variant", choices=sorted(VARIANTS), default="eleven-interval", help="Which row family to enumerate")
    parser.add_argument("--output", help="Destination JSON path (defaults to ROWSEARCH_OUTPUT_DIR/<variant file>)")
    parser.add_argument("--prefix", type=_parse_prefix, default=[], help="Only enumerate rows starting with these symbols, e.g. 0,1,3")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)

    variant = VARIANTS[args.variant]
    if args.output:
        output = Path(args.output)
    else:
        output = load_settings().output_dir / variant.default_filename
        output.parent.mkdir(parents=True, exist_ok=True)

    print("Starting...")
    try:
        result = run_variant_search(variant.name, prefix=args.prefix)
    except ValueError as exc:
        parser.error(str(exc))

    try:
        write_rows_document(output, variant.result_key, result.rows)
    except ResultSinkError as exc:
        log_event(logger, "cli_failed", level=logging.ERROR, reason=str(exc))
        print(f"Failed: {exc}")
        return 1

    print(f"Done. Found {result.count} rows. Wrote {output}.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
