# matching/cli.py
from __future__ import annotations

import argparse
import json
import os
import sys
from typing import List, Optional

from domain.errors import InvalidArgument
from domain.preferences import Budget, UserPreferences
from matching.catalog import DEFAULT_CATALOG_PATH, catalog_to_candidates, load_catalog
from matching.config import ConfigError, ScoringConfig
from matching.engine import filter_candidates, rank


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="EV Match - rank vehicles for a set of preferences")
    parser.add_argument("--catalog", type=str, default=os.getenv("EVMATCH_CATALOG", DEFAULT_CATALOG_PATH))
    parser.add_argument("--budget_min", type=float, default=None)
    parser.add_argument("--budget_max", type=float, default=None)
    parser.add_argument("--vehicle_type", type=str, default=None)
    parser.add_argument("--range_importance", type=int, default=None)
    parser.add_argument("--tech_importance", type=int, default=None)
    parser.add_argument("--charging", type=str, default="", help="comma-separated tags, e.g. fast-charging")
    parser.add_argument("--top", type=int, default=5)
    parser.add_argument("--prefilter", action="store_true", help="drop candidates outside budget/type first")
    parser.add_argument("--env_file", type=str, default=None)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        budget = None
        if args.budget_max is not None:
            budget = Budget.from_record({"min": args.budget_min, "max": args.budget_max})
        prefs = UserPreferences(
            budget=budget,
            vehicle_type=args.vehicle_type.lower() if args.vehicle_type else None,
            range_importance=args.range_importance,
            tech_importance=args.tech_importance,
            charging_features=frozenset(t.strip() for t in args.charging.split(",") if t.strip()),
        )
        config = ScoringConfig.from_env(args.env_file)
        candidates = catalog_to_candidates(load_catalog(args.catalog))
        if args.prefilter:
            candidates = filter_candidates(candidates, prefs, config)
        ranked = rank(candidates, prefs, config, top_n=args.top)
    except (FileNotFoundError, ConfigError, InvalidArgument) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    print(json.dumps([m.to_record() for m in ranked], ensure_ascii=False, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
