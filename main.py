#!/usr/bin/env python3
"""
Certificate Field Extraction System - Main Entry Point.

This is the command-line entry point for the certificate extraction
system. It reads OCR text dumps (one certificate per ``.txt`` file),
extracts and scores the certificate fields and writes one JSON record per
certificate.

Usage:
    Command Line:
        python main.py --input cert.txt
        python main.py --input ./ocr_texts/ --output results.jsonl --mode llm
        python main.py --input ./ocr_texts/ --evaluate --ground-truth data/ground_truth.json

    Python:
        from main import run_extraction
        results = run_extraction("ocr_texts/")

Author: ML Engineering Team
Version: 1.0.0
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from config import ConfigurationManager
from cert_extraction.utils.exceptions import (
    CertificateExtractionError,
    InputNotFoundError,
    UnsupportedInputError,
)
from cert_extraction.utils.helpers import (
    generate_timestamp,
    get_file_extension,
    read_text_file,
    write_jsonl,
)
from cert_extraction.utils.logger import certificate_context, get_logger, setup_logger_from_config

SUPPORTED_EXTENSIONS = ['.txt']


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        argv: Argument list. Defaults to sys.argv[1:].

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="Certificate Field Extraction System",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Process single OCR dump:
        python main.py --input cert.txt

    Process directory with the LLM backend:
        python main.py --input ./ocr_texts/ --mode llm --output results.jsonl

    With evaluation:
        python main.py --input ./ocr_texts/ --evaluate --ground-truth data/ground_truth.json
        """
    )

    parser.add_argument(
        "--input", "-i",
        type=str,
        required=True,
        help="OCR text file (.txt) or directory of them"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="JSON Lines output file (default: outputs/extraction_results_<timestamp>.jsonl)"
    )

    parser.add_argument(
        "--mode", "-m",
        type=str,
        choices=["pattern", "multi_strategy", "llm"],
        default=None,
        help="Extraction mode (default: extraction.mode from config)"
    )

    parser.add_argument(
        "--upstream-confidence",
        type=float,
        default=None,
        help="OCR confidence to carry through on every result"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to custom configuration file"
    )

    parser.add_argument(
        "--evaluate",
        action="store_true",
        help="Run evaluation after extraction"
    )

    parser.add_argument(
        "--ground-truth", "-gt",
        type=str,
        default=None,
        help="Path to ground truth file for evaluation (.json or .csv)"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log warnings and errors"
    )

    args = parser.parse_args(argv)

    if args.evaluate and not args.ground_truth:
        parser.error("--evaluate requires --ground-truth")

    return args


def initialize_system(args: argparse.Namespace) -> ConfigurationManager:
    """
    Initialize the extraction system with configuration and logging.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Initialized configuration manager.
    """
    config = ConfigurationManager(args.config)

    level = None
    if args.debug:
        level = "DEBUG"
    elif args.quiet:
        level = "WARNING"
    logger = setup_logger_from_config(level=level)

    logger.info("=" * 60)
    logger.info("CERTIFICATE FIELD EXTRACTION SYSTEM")
    logger.info("=" * 60)
    logger.info(f"Version: {config.get('project.version', '1.0.0')}")
    logger.info(f"Input: {args.input}")

    return config


def collect_input_files(input_path: str) -> List[Path]:
    """
    Resolve the input argument to a list of OCR text files.

    Args:
        input_path: File or directory path.

    Returns:
        Sorted list of text files.

    Raises:
        InputNotFoundError: If the path doesn't exist.
        UnsupportedInputError: If a single file is not a text dump.
    """
    logger = get_logger(__name__)
    path = Path(input_path)

    if not path.exists():
        raise InputNotFoundError(str(path))

    if path.is_file():
        extension = get_file_extension(path)
        if extension not in SUPPORTED_EXTENSIONS:
            raise UnsupportedInputError(extension, SUPPORTED_EXTENSIONS)
        return [path]

    files = sorted(
        p for p in path.iterdir()
        if p.is_file() and get_file_extension(p) in SUPPORTED_EXTENSIONS
    )
    if not files:
        logger.warning(f"No OCR text files found in: {path}")
    else:
        logger.info(f"Found {len(files)} files to process")
    return files


def run_extraction(
    input_path: str,
    output_path: Optional[str] = None,
    mode: Optional[str] = None,
    upstream_confidence: Optional[float] = None,
    evaluate: bool = False,
    ground_truth_path: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Run the certificate extraction pipeline over OCR text files.

    Args:
        input_path: Path to a text file or directory.
        output_path: JSON Lines output path. If None, nothing is written.
        mode: Extraction mode; None uses the configured mode.
        upstream_confidence: OCR confidence carried onto every result.
        evaluate: Whether to run evaluation.
        ground_truth_path: Path to ground truth for evaluation.

    Returns:
        List of extraction result dictionaries.

    Example:
        >>> results = run_extraction("ocr_texts/", "outputs/results.jsonl")
        >>> for r in results:
        ...     print(r['recipient'], r['confidence'])
    """
    logger = get_logger(__name__)

    from cert_extraction.pipeline import CertificateExtractor

    extractor = CertificateExtractor(mode=mode)
    files = collect_input_files(input_path)

    logger.info(f"Processing {len(files)} files...")

    results = []
    for file_path in files:
        with certificate_context(file_path.name):
            logger.info(f"Processing: {file_path}")
            result = extractor.extract(
                read_text_file(file_path),
                upstream_confidence=upstream_confidence,
                source_file=file_path.name,
            )
            results.append(result)

            logger.info(
                f"  Recipient: {result.recipient or 'N/A'}, "
                f"Confidence: {result.confidence:.2f}"
                f"{' [REVIEW]' if result.requires_review else ''}"
            )

    records = [r.to_dict() for r in results]

    if output_path and records:
        written = write_jsonl(output_path, records)
        logger.info(f"Wrote {written} records to: {output_path}")

    if evaluate and ground_truth_path:
        from cert_extraction.evaluation import Evaluator

        evaluator = Evaluator(ground_truth_path)
        evaluation = evaluator.evaluate(results)
        print(evaluation.print_report())

    flagged = sum(1 for r in results if r.requires_review)
    logger.info(f"{flagged}/{len(results)} results flagged for review")

    return records


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function - entry point for command-line execution.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = parse_arguments(argv)

    try:
        initialize_system(args)
        logger = get_logger(__name__)

        output_path = args.output or f"outputs/extraction_results_{generate_timestamp()}.jsonl"

        results = run_extraction(
            input_path=args.input,
            output_path=output_path,
            mode=args.mode,
            upstream_confidence=args.upstream_confidence,
            evaluate=args.evaluate,
            ground_truth_path=args.ground_truth
        )

        if not results:
            logger.error("No files to process")
            return 1

        logger.info("=" * 60)
        logger.info(f"Extraction complete. Processed {len(results)} files.")
        logger.info("=" * 60)

        return 0

    except CertificateExtractionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
