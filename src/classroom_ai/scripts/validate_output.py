"""Output Validation Script

Validates that a saved PDF analysis JSON conforms to the study-guide schema:
  - Required fields present and correctly typed (summary, key_points, quiz,
    is_partial)
  - Each quiz item has a question, exactly 4 options and an answer that is
    one of the options
  - Duplicate key points and empty summaries are reported as warnings

Usage:
    python -m src.classroom_ai.scripts.validate_output \\
        --path output/analysis.json

Exits with code 0 on success, 1 on validation failure, 2 on argument error.
"""

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Tuple

QUIZ_OPTION_COUNT = 4


def load_analysis(path: Path) -> Dict[str, Any]:
    """Load an analysis object from a JSON file."""
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("Top-level JSON is not an analysis object.")
    return data


def validate_quiz_item(item: Any, idx: int) -> List[str]:
    """Validate a single quiz item. Returns the list of errors."""
    if not isinstance(item, dict):
        return [f"[quiz={idx}] should be an object, got {type(item).__name__}"]

    errors: List[str] = []
    question = item.get("question")
    if not isinstance(question, str) or not question.strip():
        errors.append(f"[quiz={idx}] missing or empty 'question'")

    options = item.get("options")
    if not isinstance(options, list):
        errors.append(f"[quiz={idx}] 'options' should be a list")
        return errors
    if len(options) != QUIZ_OPTION_COUNT:
        errors.append(
            f"[quiz={idx}] has {len(options)} options, expected {QUIZ_OPTION_COUNT}"
        )

    answer = item.get("answer")
    if not isinstance(answer, str):
        errors.append(f"[quiz={idx}] missing 'answer'")
    elif answer not in options:
        errors.append(f"[quiz={idx}] answer {answer!r} is not one of the options")

    return errors


def validate_analysis(analysis: Dict[str, Any]) -> Tuple[List[str], List[str]]:
    """Validate a whole analysis object.

    Returns:
        (errors, warnings)
    """
    errors: List[str] = []
    warnings: List[str] = []

    summary = analysis.get("summary")
    if summary is None:
        errors.append("missing 'summary'")
    elif not isinstance(summary, str):
        errors.append(f"'summary' should be a string, got {type(summary).__name__}")
    elif not summary.strip():
        warnings.append("summary is empty/whitespace")

    key_points = analysis.get("key_points")
    if not isinstance(key_points, list):
        errors.append("'key_points' missing or not a list")
    else:
        seen = set()
        for idx, point in enumerate(key_points):
            if not isinstance(point, str):
                errors.append(f"[key_point={idx}] should be a string")
                continue
            if point in seen:
                warnings.append(f"[key_point={idx}] duplicate key point: {point[:60]!r}")
            seen.add(point)

    quiz = analysis.get("quiz")
    if not isinstance(quiz, list):
        errors.append("'quiz' missing or not a list")
    else:
        for idx, item in enumerate(quiz):
            errors.extend(validate_quiz_item(item, idx))

    if "is_partial" in analysis and not isinstance(analysis["is_partial"], bool):
        errors.append("'is_partial' should be a boolean")

    return errors, warnings


def main(argv: list[str] | None = None) -> None:
    """Validate a saved analysis file.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:]

    Raises:
        SystemExit: With code 0 on success, 1 on validation failure
    """
    parser = argparse.ArgumentParser(description="Validate PDF analysis JSON output.")
    parser.add_argument(
        "--path",
        type=str,
        required=True,
        help="Path to analysis.json",
    )
    args = parser.parse_args(argv)

    try:
        analysis = load_analysis(Path(args.path))
    except (OSError, ValueError) as e:
        print(f"FAILED TO LOAD FILE: {e}")
        raise SystemExit(1)

    errors, warnings = validate_analysis(analysis)

    if errors:
        print("VALIDATION FAILED:\n")
        for err in errors:
            print(err)
        print(f"\nTotal errors: {len(errors)}")
        if warnings:
            print(f"Total warnings: {len(warnings)}")
        raise SystemExit(1)

    print("VALIDATION PASSED")
    print(f"Key points: {len(analysis['key_points'])}, quiz items: {len(analysis['quiz'])}")
    if warnings:
        print("\nWarnings (non-fatal):")
        for w in warnings:
            print(w)
        print(f"\nTotal warnings: {len(warnings)}")

    raise SystemExit(0)


if __name__ == "__main__":
    main()
