"""
Evaluate one AHP survey submission stored as JSON and print the results.

    python run_survey.py submission.json
    python run_survey.py submission.json --json --threshold 0.15
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from results_table import build_summary_table, format_results_for_print
from survey_pipeline import SubmissionError, SurveyConfig, evaluate_submission, parse_submission, results_to_dict


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compute AHP weights and consistency for a survey submission")
    parser.add_argument("submission", type=Path, help="Path to the submission JSON file")
    parser.add_argument("--json", action="store_true", help="Print results as JSON instead of a report")
    parser.add_argument("--threshold", type=float, default=SurveyConfig.consistency_threshold,
                        help="CR below this value counts as consistent (default: %(default)s)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging (matrices and weights)")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if not args.submission.exists():
        print(f"Error: submission file not found: {args.submission}", file=sys.stderr)
        return 1

    try:
        raw = args.submission.read_bytes()
    except OSError as exc:
        print(f"Error: cannot read submission file {args.submission}: {exc.strerror or exc}", file=sys.stderr)
        return 1

    config = SurveyConfig(consistency_threshold=args.threshold)
    try:
        submission = parse_submission(raw)
        results = evaluate_submission(submission, config)
    except SubmissionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps({"ok": True, "results": results_to_dict(results)}, ensure_ascii=False, indent=2))
        return 0

    print("=" * 72)
    print(f"Respondent: {submission.meta.get('name') or '(anonymous)'}")
    print(format_results_for_print(results))
    print("=" * 72)
    print(build_summary_table(results, submission.meta).T.to_string(header=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
