# apps/cli/generate_daily.py
# Nightly entry point: writes daily-YYYY-MM-DD.json for one or more days.
# Example:
#   python apps/cli/generate_daily.py 20260118 --out public/puzzles --max-ms 60000
#   python apps/cli/generate_daily.py --days 7 --variants LR TB HV
from __future__ import annotations

import argparse
import re
import sys
from datetime import date, datetime, timedelta
from pathlib import Path

from tqdm import tqdm

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from puzzlegen.config import load_config  # noqa: E402
from puzzlegen.daily import run_daily  # noqa: E402
from puzzlegen.errors import GenerationError  # noqa: E402
from puzzlegen.prng import daily_seed  # noqa: E402
from puzzlegen.variants import VARIANT_LAYOUTS  # noqa: E402

DEFAULT_CONFIG = ROOT / "configs" / "daily.yaml"


def parse_seed(text: str) -> tuple[int, str, date | None]:
    """'20260118' -> (20260118, '2026-01-18', date); anything else -> (int, 'custom-<seed>', None)."""
    if re.fullmatch(r"\d{8}", text):
        try:
            day = datetime.strptime(text, "%Y%m%d").date()
        except ValueError:
            day = None
        if day is not None:
            return int(text), day.isoformat(), day
    try:
        seed = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"seed must be an integer, got {text!r}") from None
    return seed, f"custom-{text}", None


def tomorrow_seed(today: date | None = None) -> tuple[int, str, date]:
    day = (today or date.today()) + timedelta(days=1)
    return daily_seed(day), day.isoformat(), day


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Generate daily puzzle artifacts.")
    ap.add_argument("seed", nargs="?", default=None,
                    help="YYYYMMDD date seed or any integer (default: tomorrow)")
    ap.add_argument("--config", type=str, default=None,
                    help=f"YAML config (default: {DEFAULT_CONFIG.relative_to(ROOT)} if present)")
    ap.add_argument("--out", type=str, default=None, help="output directory")
    ap.add_argument("--days", type=int, default=1, help="consecutive days starting at the seed date")
    ap.add_argument("--max-ms", type=int, default=None, help="search budget per board in ms")
    mode = ap.add_mutually_exclusive_group()
    mode.add_argument("--strict", dest="strict", action="store_true", default=None,
                      help="fail instead of publishing an under-covered search")
    mode.add_argument("--lenient", dest="strict", action="store_false",
                      help="publish the best candidate even if under-covered")
    ap.add_argument("--variants", nargs="*", default=None, choices=sorted(VARIANT_LAYOUTS),
                    help="extra jigsaw layouts to compute targets for")
    ap.add_argument("--quiet", action="store_true")
    return ap


def _day_jobs(seed_arg: str | None, days: int) -> list[tuple[int, str]]:
    if seed_arg is None:
        seed, label, day = tomorrow_seed()
    else:
        seed, label, day = parse_seed(seed_arg)
    if day is None:
        if days != 1:
            raise argparse.ArgumentTypeError("--days needs a date seed (YYYYMMDD)")
        return [(seed, label)]
    jobs = []
    for i in range(days):
        d = day + timedelta(days=i)
        jobs.append((daily_seed(d), d.isoformat()))
    return jobs


def main(argv=None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    if args.days < 1:
        ap.error("--days must be >= 1")
    try:
        jobs = _day_jobs(args.seed, args.days)
    except argparse.ArgumentTypeError as exc:
        ap.error(str(exc))

    config_path = args.config
    if config_path is None and DEFAULT_CONFIG.exists():
        config_path = str(DEFAULT_CONFIG)
    cfg = load_config(config_path, max_ms=args.max_ms, strict=args.strict,
                      variants=args.variants, out_dir=args.out)

    quiet = args.quiet or len(jobs) > 1
    written = []
    for seed, label in tqdm(jobs, desc="[daily] days", unit="day", disable=len(jobs) == 1 or args.quiet):
        try:
            path = run_daily(seed, cfg.out_dir, date_label=label, config=cfg, quiet=quiet)
        except GenerationError as exc:
            print(f"[fail] {label}: {exc}", file=sys.stderr)
            return 1
        written.append(path)

    if not args.quiet:
        for path in written:
            print(f"[ok] {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
