"""HabitFlow — command-line entry point.

Loads habits from the SQLite repository, runs one engine, prints JSON:

    habitflow stats                 # streaks, rates, target achievement per habit
    habitflow insights              # heuristic insights, highest score first
    habitflow review                # last month's review summary
    habitflow analytics             # dashboard aggregates + heatmap
    habitflow toggle <id> [date]    # mark/unmark a day
    habitflow ai-insights           # ask the configured AI provider
"""

import argparse
import json
import logging
import sys
from datetime import date

from habitflow import analytics
from habitflow.config import COMPLETION_WINDOW_DAYS, LOG_DEBUG, LOG_LEVEL
from habitflow.dates import parse_key, to_key, today as local_today
from habitflow.insights import generate_insights
from habitflow.review import generate_review_summary, is_review_due
from habitflow.stats import completion_rate, current_streak, longest_streak, target_achievement
from habitflow.storage import (
    HabitRepository, SQLiteHabitRepository, UnknownHabitError, toggle_log,
)

log = logging.getLogger("habitflow")


def cmd_stats(repo: HabitRepository, today: date, args) -> dict:
    return {
        "date": to_key(today),
        "habits": [
            {
                "id": h.id,
                "name": h.name,
                "archived": h.archived,
                "current_streak": current_streak(h, today),
                "longest_streak": longest_streak(h),
                "completion_rate": completion_rate(h, COMPLETION_WINDOW_DAYS, today),
                "target": target_achievement(h, today).to_dict(),
            }
            for h in repo.load_habits()
        ],
    }


def cmd_insights(repo: HabitRepository, today: date, args) -> dict:
    insights = generate_insights(repo.load_habits(), today)
    return {"date": to_key(today), "insights": [i.to_dict() for i in insights]}


def cmd_review(repo: HabitRepository, today: date, args) -> dict:
    summary = generate_review_summary(repo.load_habits(), today)
    result = summary.to_dict()
    result["due"] = is_review_due(repo.get_reviews(), today)
    return result


def cmd_analytics(repo: HabitRepository, today: date, args) -> dict:
    habits = repo.load_habits()
    return {
        "overview": analytics.overview(habits, today),
        "trend": analytics.daily_trend(habits, today),
        "day_of_week": analytics.day_of_week_totals(habits),
        "categories": analytics.category_distribution(habits),
        "consistency": analytics.consistency_ranking(habits, today),
        "heatmap": analytics.heatmap(habits, today),
    }


def cmd_toggle(repo: HabitRepository, today: date, args) -> dict:
    day = parse_key(args.day) if args.day else today
    done = toggle_log(repo, args.habit_id, day)
    return {"habit_id": args.habit_id, "date": to_key(day), "done": done}


def cmd_ai_insights(repo: HabitRepository, today: date, args) -> dict:
    # Imported lazily: the vendor SDKs are only needed for this command
    from habitflow.ai_insights import generate_ai_insights
    from habitflow.llm import get_client

    client = get_client(args.provider or "")
    insights = generate_ai_insights(repo.load_habits(), client, today)
    return {"date": to_key(today), "insights": [i.to_dict() for i in insights]}


COMMANDS = {
    "stats": cmd_stats,
    "insights": cmd_insights,
    "review": cmd_review,
    "analytics": cmd_analytics,
    "toggle": cmd_toggle,
    "ai-insights": cmd_ai_insights,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="habitflow", description=__doc__.splitlines()[0])
    parser.add_argument("--db", help="SQLite database path (default: HABITFLOW_DB_PATH)")
    parser.add_argument("--today", help="Reference date YYYY-MM-DD (default: local today)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("stats", help="Per-habit streaks and rates")
    sub.add_parser("insights", help="Heuristic insights")
    sub.add_parser("review", help="Last month's review summary")
    sub.add_parser("analytics", help="Dashboard aggregates")
    toggle = sub.add_parser("toggle", help="Mark or unmark a day")
    toggle.add_argument("habit_id")
    toggle.add_argument("day", nargs="?", help="YYYY-MM-DD (default: today)")
    ai = sub.add_parser("ai-insights", help="Insights from the AI provider")
    ai.add_argument("--provider", help="openai | deepseek | qwen | gemini | claude")
    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=logging.DEBUG if LOG_DEBUG else LOG_LEVEL,
        format="%(asctime)s %(levelname)-5s %(name)s — %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    args = build_parser().parse_args(argv)
    repo = SQLiteHabitRepository(args.db)

    try:
        today = parse_key(args.today) if args.today else local_today()
        result = COMMANDS[args.command](repo, today, args)
    except UnknownHabitError as e:
        log.error("Unknown habit: %s", e.args[0])
        return 1
    except Exception as e:
        log.error("%s failed: %s", args.command, e, exc_info=True)
        return 1

    print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
