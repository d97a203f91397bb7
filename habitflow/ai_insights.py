"""AI insights — ask an LLM for observations the heuristics can't see.

Flow: habits → compact per-habit summary → prompt → provider.chat() →
JSON array → Insight list. Only the summary leaves the machine, never the
raw logs. Timeouts and retries belong to the caller; errors propagate.
"""

import json
import logging
import re
from datetime import date, timedelta

from habitflow.config import AI_MAX_TOKENS, AI_TEMPERATURE_PCT
from habitflow.dates import today as local_today
from habitflow.llm import LLMProvider, get_client
from habitflow.models import INSIGHT_TYPES, Habit, Insight, active_habits
from habitflow.prompt_loader import get_prompt, render_prompt
from habitflow.stats import longest_streak

log = logging.getLogger(__name__)

AI_HABIT_ID = "ai-generated"

_RECENT_DAYS = 30
_FENCE = re.compile(r"```(?:json)?\s*|\s*```", re.IGNORECASE)


class AIResponseError(ValueError):
    """The model's reply could not be turned into insights."""


def build_ai_summary_payload(habits: list[Habit], today: date | None = None) -> list[dict]:
    """Per-habit summary sent to the model, one entry per active habit."""
    today = today or local_today()
    cutoff = today - timedelta(days=_RECENT_DAYS)
    payload = []
    for h in active_habits(habits):
        days = h.logged_dates()
        payload.append({
            "name": h.name,
            "category": h.category,
            "frequency": h.frequency.to_dict(),
            "total_completions": len(days),
            "last_30_days_count": sum(1 for d in days if d > cutoff),
            "longest_streak": longest_streak(h),
        })
    return payload


def build_messages(payload: list[dict]) -> list[dict]:
    return [
        {"role": "system", "content": get_prompt("ai_system")},
        {"role": "user", "content": render_prompt(
            "ai_insights", habits=json.dumps(payload, ensure_ascii=False),
        )},
    ]


def parse_ai_response(content: str) -> list[Insight]:
    """Turn the model's JSON array (optionally in a code fence) into Insights.

    Raises AIResponseError if the reply isn't a JSON array.
    """
    text = _FENCE.sub("", content or "").strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise AIResponseError(f"AI response is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise AIResponseError(f"Expected a JSON array, got {type(data).__name__}")

    insights = []
    for n, item in enumerate(data, start=1):
        if not isinstance(item, dict):
            log.warning("Skipping non-object AI insight #%d", n)
            continue
        kind = item.get("type")
        try:
            score = int(item.get("score", 0))
        except (TypeError, ValueError):
            score = 0
        insights.append(Insight(
            id=str(item.get("id") or f"ai-{n}"),
            type=kind if kind in INSIGHT_TYPES else "neutral",
            title=str(item.get("title", "")),
            description=str(item.get("description", "")),
            score=score,
            habit_id=AI_HABIT_ID,
        ))
    return insights


def generate_ai_insights(habits: list[Habit], provider: LLMProvider | None = None,
                         today: date | None = None) -> list[Insight]:
    """Summarize habits, ask the provider, and parse its answer."""
    provider = provider or get_client()
    payload = build_ai_summary_payload(habits, today)
    messages = build_messages(payload)

    response = provider.chat(
        messages,
        temperature=AI_TEMPERATURE_PCT / 100,
        max_tokens=AI_MAX_TOKENS,
    )
    insights = parse_ai_response(response.content)

    log.info(
        "AI insights: %d from %s (%d tokens)",
        len(insights), provider.provider_name(), response.total_tokens,
    )
    return insights
