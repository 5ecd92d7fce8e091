"""
hypotest command line

Usage:
    hypotest analyze --csv data.csv                  # first two columns
    hypotest analyze --csv data.csv --group-column group --value-column value
    hypotest analyze --baseline a.txt --enhanced b.txt [--paired]
    cat data.csv | hypotest analyze --csv -
    hypotest power --effect-size 0.8 --sample-size 50
    hypotest sample-size --effect-size 0.5 [--power 0.9]

Exit codes: 0 on success, 2 on invalid or degenerate input, 1 otherwise.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from .config import (
    ADEQUATE_POWER,
    DEFAULT_ALPHA,
    DEFAULT_CONFIDENCE_LEVEL,
    DEFAULT_POWER_METHOD,
    POWER_METHODS,
)
from .data_loader import load_sample_file, load_samples
from .errors import DegenerateInputError, InvalidInputError
from .report import analyze, generate_recommendation
from .statistics import estimate_power, required_sample_size

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INVALID_INPUT = 2


def _run_analyze(args: argparse.Namespace) -> Dict[str, Any]:
    if args.csv is not None:
        source = sys.stdin if args.csv == "-" else args.csv
        baseline, enhanced = load_samples(
            source,
            baseline_column=args.baseline_column,
            enhanced_column=args.enhanced_column,
            group_column=args.group_column,
            value_column=args.value_column,
        )
    else:
        baseline = load_sample_file(args.baseline)
        enhanced = load_sample_file(args.enhanced)

    report = analyze(
        baseline,
        enhanced,
        confidence_level=args.confidence_level,
        equal_variance=args.equal_variance,
        paired=args.paired,
        power_method=args.power_method,
    )
    if args.explain:
        print(generate_recommendation(report), file=sys.stderr)
    return report.to_dict()


def _run_power(args: argparse.Namespace) -> Dict[str, Any]:
    return asdict(estimate_power(args.effect_size, args.sample_size, alpha=args.alpha, method=args.method))


def _run_sample_size(args: argparse.Namespace) -> Dict[str, Any]:
    n = required_sample_size(args.effect_size, power=args.power, alpha=args.alpha, method=args.method)
    return {"sample_size": n}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hypotest",
        description="Two-sample t-tests, Cohen's d and power analysis",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("analyze", help="compare a baseline sample with an enhanced sample")
    p.add_argument("--csv", help="CSV file with both samples ('-' for stdin)")
    p.add_argument("--baseline-column", help="wide CSV: baseline column (default: first column)")
    p.add_argument("--enhanced-column", help="wide CSV: enhanced column (default: second column)")
    p.add_argument("--group-column", help="long CSV: column holding the sample label")
    p.add_argument("--value-column", default="value", help="long CSV: value column (default: value)")
    p.add_argument("--baseline", help="line-delimited baseline sample")
    p.add_argument("--enhanced", help="line-delimited enhanced sample")
    p.add_argument("--confidence-level", type=float, default=DEFAULT_CONFIDENCE_LEVEL)
    p.add_argument("--equal-variance", action="store_true", help="Student's pooled-variance test")
    p.add_argument("--paired", action="store_true", help="paired test on per-item differences")
    p.add_argument("--power-method", choices=POWER_METHODS, default=DEFAULT_POWER_METHOD)
    p.add_argument("--explain", action="store_true", help="print a plain-language verdict to stderr")
    p.set_defaults(func=_run_analyze)

    p = sub.add_parser("power", help="estimate power for an effect size and per-group sample size")
    p.add_argument("--effect-size", type=float, required=True)
    p.add_argument("--sample-size", type=int, required=True)
    p.add_argument("--alpha", type=float, default=DEFAULT_ALPHA)
    p.add_argument("--method", choices=POWER_METHODS, default=DEFAULT_POWER_METHOD)
    p.set_defaults(func=_run_power)

    p = sub.add_parser("sample-size", help="per-group sample size needed to reach a target power")
    p.add_argument("--effect-size", type=float, required=True)
    p.add_argument("--power", type=float, default=ADEQUATE_POWER)
    p.add_argument("--alpha", type=float, default=DEFAULT_ALPHA)
    p.add_argument("--method", choices=POWER_METHODS, default=DEFAULT_POWER_METHOD)
    p.set_defaults(func=_run_sample_size)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "analyze" and args.csv is None and not (args.baseline and args.enhanced):
        parser.error("analyze needs --csv or both --baseline and --enhanced")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        payload = args.func(args)
        text = json.dumps(payload, indent=2, allow_nan=False)
    except (InvalidInputError, DegenerateInputError) as e:
        logger.error(f"invalid input: {e}")
        return EXIT_INVALID_INPUT
    except Exception as e:
        logger.error(f"{args.command} failed: {e}")
        return EXIT_FAILURE

    print(text)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
