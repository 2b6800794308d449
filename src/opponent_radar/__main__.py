"""Entry point: python -m opponent_radar"""

from __future__ import annotations

import argparse
import asyncio
import sys

from dotenv import load_dotenv

from opponent_radar.config import RadarSettings
from opponent_radar.display import console, print_assessment
from opponent_radar.identity import normalize, normalize_all
from opponent_radar.observability import configure_logging
from opponent_radar.pipeline import OpponentRadar
from opponent_radar.resolver import resolve
from opponent_radar.session import SessionContext


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="opponent_radar",
        description="Explainable risk score for a chess.com opponent.",
    )
    parser.add_argument("--log-format", choices=("console", "json"), default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    assess = sub.add_parser("assess", help="score a username")
    assess.add_argument("username")
    assess.add_argument("--pool", default=None, help="preferred pool, e.g. chess_blitz")
    assess.add_argument("--json", action="store_true", help="print the raw assessment")

    res = sub.add_parser("resolve", help="pick the opponent from candidate names")
    res.add_argument("--candidates", nargs="+", required=True)
    res.add_argument("--self", dest="self_identity", default=None)
    res.add_argument("--sticky", default=None)

    me = sub.add_parser("set-self", help="remember your own username")
    me.add_argument("username")
    return parser


async def _assess(settings: RadarSettings, args: argparse.Namespace) -> int:
    async with OpponentRadar.from_settings(settings) as radar:
        outcome = await radar.analyze_manual(args.username, preferred_pool=args.pool)
    if outcome.assessment is None:
        console.print(f"[red]{outcome.message}[/]")
        return 1
    if args.json:
        print(outcome.assessment.model_dump_json(indent=2))
    else:
        print_assessment(outcome.assessment)
    return 0 if outcome.assessment.ok else 1


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = _build_parser().parse_args(argv)
    settings = RadarSettings()
    configure_logging(args.log_format or settings.LOG_FORMAT)

    if args.command == "assess":
        return asyncio.run(_assess(settings, args))

    if args.command == "resolve":
        opponent = resolve(
            normalize_all(args.candidates),
            normalize(args.self_identity),
            normalize(args.sticky),
        )
        print(opponent or "unresolved")
        return 0 if opponent else 1

    session = SessionContext.load(settings.SESSION_FILE)
    if not session.set_self_override(args.username):
        console.print(f"[red]not a valid username: {args.username!r}[/]")
        return 1
    session.save(settings.SESSION_FILE)
    console.print(f"Saved @{session.self_override} as your username.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
