"""Analysis CLI Entry Point

Provides the command-line interface for analyzing a local PDF with the
Classroom AI pipeline: text extraction, chunked LLM analysis and merging
into a study guide written as JSON.

Usage:
    python -m src.run_analysis --input lesson.pdf --output-dir output
"""

import argparse
import asyncio
import json
import logging
import shutil
import tempfile
import time
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from src.classroom_ai.config import AppSettings, PipelineSettings
from src.classroom_ai.errors import ServiceError
from src.classroom_ai.log_setup import configure_logging
from src.classroom_ai.pipeline import build_pipeline


def stage_document(source: Path) -> Path:
    """Copy the input into a temp file the pipeline is free to delete."""
    fd, tmp_name = tempfile.mkstemp(prefix="upload_", suffix=source.suffix or ".pdf")
    with open(fd, "wb") as out, source.open("rb") as src:
        shutil.copyfileobj(src, out)
    return Path(tmp_name)


def output_path(output_dir: Path, keep_history: bool) -> Path:
    if keep_history:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return output_dir / f"analysis_{timestamp}.json"
    return output_dir / "analysis.json"


def main(argv=None) -> int:
    """
    CLI entrypoint for the Classroom AI PDF analysis.

    Parses command-line arguments, runs the pipeline on one PDF,
    and returns a Unix-style exit code (0 on success, non-zero on failure).
    """
    app_settings = AppSettings.from_env()
    configure_logging(app_settings.log_dir)
    logger = logging.getLogger(__name__)

    parser = argparse.ArgumentParser(description="Classroom AI PDF analysis")
    parser.add_argument(
        "--input",
        type=Path,
        required=True,
        help="Path to the PDF to analyze.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("output"),
        help="Directory where the analysis JSON will be written.",
    )
    parser.add_argument(
        "--max-chunks",
        type=int,
        default=None,
        help="Override the maximum number of chunks analyzed.",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=None,
        help="Override the target chunk size in characters.",
    )
    parser.add_argument(
        "--json-retries",
        type=int,
        default=None,
        help="Override retries for unparseable model responses.",
    )
    parser.add_argument(
        "--no-history",
        action="store_true",
        help="Overwrite analysis.json instead of creating a timestamped file",
    )

    args = parser.parse_args(argv)

    overrides = {
        "max_chunks": args.max_chunks,
        "chunk_size": args.chunk_size,
        "json_retries": args.json_retries,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}

    logger.info("=== Starting Classroom AI PDF analysis ===")
    logger.info("Input: %s", args.input)
    logger.info("Output directory: %s", args.output_dir)
    logger.info("Keep history: %s", not args.no_history)

    if not args.input.is_file():
        logger.error("Input file not found: %s", args.input)
        return 1

    try:
        settings = PipelineSettings.model_validate(
            {**PipelineSettings.from_env().model_dump(), **overrides}
        )
    except ValidationError as e:
        logger.error("Invalid pipeline settings: %s", e)
        return 1

    try:
        start_time = time.time()

        pipeline = build_pipeline(settings=settings)
        document = stage_document(args.input)
        analysis = asyncio.run(pipeline.analyze(document))

        args.output_dir.mkdir(parents=True, exist_ok=True)
        out_file = output_path(args.output_dir, keep_history=not args.no_history)
        with out_file.open("w", encoding="utf-8") as f:
            json.dump(analysis.model_dump(), f, ensure_ascii=False, indent=2)

        elapsed_time = time.time() - start_time

        logger.info("=" * 70)
        logger.info("Analysis completed successfully in %.2fs", elapsed_time)
        logger.info("  Key points: %d", len(analysis.key_points))
        logger.info("  Quiz items: %d", len(analysis.quiz))
        logger.info("  Partial:    %s", analysis.is_partial)
        logger.info("  Output:     %s", out_file)
        logger.info("=" * 70)

    except ServiceError as e:
        logger.error("Analysis failed (%s): %s", e.kind, e.message)
        return 1
    except Exception as e:
        logger.exception("Analysis failed with an unhandled exception: %s", e)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
