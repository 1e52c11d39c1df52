"""Command-line interface for running the document pipeline.

Provides subcommands to explain a single document, print only its
extracted text, and process a folder of documents into a CSV summary.
"""

import argparse
import asyncio
import csv
import json
import sys
import time
from pathlib import Path

from carebridge.pipeline.factory import build_orchestrator
from carebridge.pipeline.orchestrator import Failed, Outcome, PipelineOrchestrator
from carebridge.pipeline.report import to_dict, to_markdown
from carebridge.storage.base import ImageAsset
from carebridge.utils.config import AppConfig, load_config
from carebridge.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = (
    "*.png",
    "*.jpg",
    "*.jpeg",
    "*.heic",
    "*.tiff",
    "*.tif",
    "*.webp",
    "*.pdf",
)
_CSV_COLUMNS = [
    "filename",
    "status",
    "stage",
    "key",
    "line_count",
    "has_narrative",
    "processing_time_s",
    "error",
]


def _find_documents(input_dir: Path) -> list[Path]:
    """Find all supported document files in a directory.

    Args:
        input_dir: Directory to scan for documents.

    Returns:
        Sorted list of document file paths.
    """
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def _render(outcome: Outcome, output_format: str) -> str:
    if output_format == "markdown":
        return to_markdown(outcome)
    return json.dumps(to_dict(outcome), indent=2)


def run_single(
    file_path: Path,
    config: AppConfig,
    summarize: bool | None = None,
) -> Outcome:
    """Run the pipeline once for a single document.

    Args:
        file_path: Path to the document image.
        config: Application configuration.
        summarize: Overrides the configured summarizer switch when given.

    Returns:
        The run's ``Done`` or ``Failed`` outcome.
    """
    orchestrator = build_orchestrator(config, summarize=summarize)
    return asyncio.run(orchestrator.run(ImageAsset.from_path(file_path)))


async def _run_sequentially(
    orchestrator: PipelineOrchestrator, files: list[Path], verbose: bool
) -> list[dict[str, object]]:
    rows: list[dict[str, object]] = []
    for i, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{i}/{len(files)}]: {file_path.name}")

        start_time = time.time()
        outcome = await orchestrator.run(ImageAsset.from_path(file_path))
        row: dict[str, object] = {
            "filename": file_path.name,
            "processing_time_s": round(time.time() - start_time, 2),
        }
        if isinstance(outcome, Failed):
            row.update(
                status="failed",
                stage=outcome.stage.value,
                error=outcome.error.message,
            )
        else:
            row.update(
                status="success",
                key=outcome.key,
                line_count=len(outcome.analysis.lines()),
                has_narrative=outcome.narrative is not None,
            )
        rows.append(row)
    return rows


def process_folder(
    input_dir: Path,
    output_csv: Path,
    config: AppConfig,
    summarize: bool | None = None,
    verbose: bool = False,
) -> dict[str, int]:
    """Run every document in a folder through the pipeline, one at a time.

    Args:
        input_dir: Directory containing document images.
        output_csv: Path for the output CSV file.
        config: Application configuration.
        summarize: Overrides the configured summarizer switch when given.
        verbose: Whether to print per-file progress.

    Returns:
        Summary dict with total, successful, and failed counts.
    """
    files = _find_documents(input_dir)
    if not files:
        logger.warning("No documents found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d documents to process", len(files))
    orchestrator = build_orchestrator(config, summarize=summarize)
    rows = asyncio.run(_run_sequentially(orchestrator, files, verbose))

    _write_csv(rows, output_csv)
    logger.info("Results written to %s", output_csv)

    successful = sum(1 for r in rows if r["status"] == "success")
    summary = {
        "total": len(files),
        "successful": successful,
        "failed": len(files) - successful,
    }
    _print_summary(summary, output_csv)
    return summary


def _write_csv(rows: list[dict[str, object]], output_path: Path) -> None:
    """Write per-document results to a CSV file."""
    if not rows:
        return

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=_CSV_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    """Print batch processing summary to stdout."""
    print(f"\n{'=' * 50}")
    print("Batch Processing Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def _write_output(text: str, output: Path | None) -> None:
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text)
        print(f"Output written to {output}")
    else:
        print(text)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="carebridge",
        description="Explain medical document images in plain language",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Configuration file (default: configs/config.yaml)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Explain a single document")
    run_parser.add_argument("file", type=Path, help="Document image to process")
    run_parser.add_argument(
        "--no-summary", action="store_true", help="Skip the narrative summary"
    )
    run_parser.add_argument(
        "-f",
        "--format",
        choices=["json", "markdown"],
        default="json",
        dest="output_format",
        help="Output format (default: json)",
    )
    run_parser.add_argument("-o", "--output", type=Path, help="Output file")

    text_parser = subparsers.add_parser(
        "text", help="Print the extracted text of a document"
    )
    text_parser.add_argument("file", type=Path, help="Document image to process")

    batch_parser = subparsers.add_parser("batch", help="Process a folder of documents")
    batch_parser.add_argument(
        "input_dir", type=Path, help="Input directory with documents"
    )
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument(
        "--no-summary", action="store_true", help="Skip the narrative summaries"
    )
    batch_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    config = load_config(args.config)
    setup_logging(config.log_level)

    if args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(
            args.input_dir,
            args.output,
            config,
            summarize=False if args.no_summary else None,
            verbose=args.verbose,
        )
        return

    if not args.file.exists():
        print(f"Error: {args.file} does not exist", file=sys.stderr)
        sys.exit(1)

    summarize = False if args.command == "text" or args.no_summary else None
    outcome = run_single(args.file, config, summarize=summarize)

    if isinstance(outcome, Failed):
        print(f"Error: {outcome.message}", file=sys.stderr)
        print(f"({outcome.stage.value}: {outcome.error.message})", file=sys.stderr)
        sys.exit(1)

    if args.command == "text":
        print(outcome.text)
    else:
        _write_output(_render(outcome, args.output_format), args.output)


if __name__ == "__main__":
    main()
