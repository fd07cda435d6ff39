"""
Studio-wide insight text.

A numeric digest of the sessions is sent to Gemini when it is configured.
When it is not, or when the call fails or returns nothing, the same digest
drives a deterministic set of canned insights instead.
"""
import logging
import os
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable

from studio_calendar.config import GEMINI_MODEL, MAX_INSIGHTS
from studio_calendar.models.sessions import SessionRecord
from studio_calendar.utils.time_parser import canonical_time

logger = logging.getLogger(__name__)

SOURCE_AI = "ai"
SOURCE_FALLBACK = "fallback"


@dataclass(frozen=True)
class InsightResult:
    insights: list[str] = field(default_factory=list)
    source: str = SOURCE_FALLBACK


def _fill(s: SessionRecord) -> float:
    return s.fill_rate if s.fill_rate is not None else s.session_fill_rate


def build_digest(sessions: Iterable[SessionRecord]) -> dict[str, Any]:
    sessions = list(sessions)
    n = len(sessions)
    if n == 0:
        return {
            "totalSessions": 0,
            "avgFillRate": 0.0,
            "avgClassSize": 0.0,
            "topClasses": [],
            "lowClasses": [],
            "peakDays": [],
            "peakTimes": [],
            "avgRevenue": 0.0,
            "cancelRate": 0.0,
        }

    class_fills: dict[str, list[float]] = {}
    for s in sessions:
        class_fills.setdefault(s.class_name or "Unknown", []).append(_fill(s))
    class_avgs = [(name, sum(v) / len(v)) for name, v in class_fills.items()]

    days = Counter(s.day for s in sessions if s.day)
    times = Counter(canonical_time(s.time) for s in sessions if s.time)

    return {
        "totalSessions": n,
        "avgFillRate": sum(_fill(s) for s in sessions) / n,
        "avgClassSize": sum(s.checked_in for s in sessions) / n,
        "topClasses": [c for c, _ in sorted(class_avgs, key=lambda x: -x[1])[:3]],
        "lowClasses": [c for c, _ in sorted(class_avgs, key=lambda x: x[1])[:3]],
        "peakDays": [d for d, _ in days.most_common(2)],
        "peakTimes": [t for t, _ in times.most_common(3)],
        "avgRevenue": sum(s.revenue for s in sessions) / n,
        # mean late cancellations per session
        "cancelRate": sum(s.late_cancelled for s in sessions) / n,
    }


def mock_insights(digest: dict[str, Any]) -> list[str]:
    if not digest.get("totalSessions"):
        return ["No sessions loaded yet. Upload a sessions export to see insights."]

    fill = digest["avgFillRate"]
    top = digest["topClasses"]
    low = digest["lowClasses"]
    peak_days = digest["peakDays"]
    peak_times = digest["peakTimes"]
    out = []

    if fill > 85:
        out.append(
            f"Outstanding {fill:.1f}% fill rate. Consider adding {top[0]} sessions around "
            f"{' and '.join(peak_times[:2])} to capture waitlist demand."
        )
    elif fill > 70:
        out.append(
            f"Strong {fill:.1f}% fill rate with {' and '.join(peak_days)} showing the highest demand. "
            "Expand popular classes on these days."
        )
    elif fill < 50:
        out.append(
            f"Fill rate of {fill:.1f}% needs attention. Consolidate {' and '.join(low)} "
            f"or move them to the {peak_times[0] if peak_times else 'busiest'} slot."
        )
    else:
        out.append(f"Moderate {fill:.1f}% fill rate. Promote {top[0]}, which shows the strongest uptake.")

    if top and low and top[0] != low[0]:
        out.append(f"Replace {low[0]} with {top[0]} in weaker slots; it fills better at similar times.")

    if len(peak_times) > 1:
        out.append(f"Peak times are {' and '.join(peak_times[:2])}. Put the strongest trainers on these slots.")

    per_attendee = digest["avgRevenue"] / max(digest["avgClassSize"], 1)
    out.append(f"Revenue per attendee is {per_attendee:,.0f} per class.")

    if digest["totalSessions"] > 50 and top:
        out.append(
            f"High volume ({digest['totalSessions']} sessions). Keep backup trainer cover for {top[0]} "
            f"on {'/'.join(peak_days)}."
        )

    return out[:MAX_INSIGHTS]


def _prompt(digest: dict[str, Any]) -> str:
    return f"""Analyze this fitness studio class data and provide 5-7 key insights.

Data Summary:
- Total Sessions: {digest['totalSessions']}
- Average Fill Rate: {digest['avgFillRate']:.1f}%
- Average Class Size: {digest['avgClassSize']:.1f}
- Top Performing Classes: {', '.join(digest['topClasses'])}
- Low Performing Classes: {', '.join(digest['lowClasses'])}
- Peak Days: {', '.join(digest['peakDays'])}
- Peak Times: {', '.join(digest['peakTimes'])}
- Average Revenue per Session: {digest['avgRevenue']:.0f}
- Late Cancellations per Session: {digest['cancelRate']:.2f}

Keep each insight concise (1-2 sentences) and actionable. One insight per line."""


def _default_client():
    if os.getenv("USE_MOCK_AI", "false").lower() == "true":
        return None
    api_key = os.environ.get("GEMINI_API_KEY")
    if not api_key:
        return None
    from google import genai

    return genai.Client(api_key=api_key, http_options={"timeout": 30_000})


def generate_insights(sessions: Iterable[SessionRecord], client=None) -> InsightResult:
    """Never raises: any model failure degrades to the canned insights."""
    digest = build_digest(sessions)
    fallback = InsightResult(insights=mock_insights(digest), source=SOURCE_FALLBACK)

    if digest["totalSessions"] == 0:
        return fallback

    try:
        client = client or _default_client()
    except Exception as e:
        logger.warning("Gemini client unavailable, using fallback insights: %s", e)
        return fallback
    if client is None:
        return fallback

    try:
        from google.genai import types

        response = client.models.generate_content(
            model=GEMINI_MODEL,
            contents=_prompt(digest),
            config=types.GenerateContentConfig(temperature=0.3, max_output_tokens=1024),
        )
        text = (getattr(response, "text", None) or "").strip()
    except Exception as e:
        logger.warning("Gemini insight call failed, using fallback insights: %s", e)
        return fallback

    lines = [ln.strip().lstrip("-*• ").strip() for ln in text.splitlines()]
    lines = [ln for ln in lines if ln]
    if not lines:
        logger.warning("Gemini returned no insight text, using fallback insights")
        return fallback
    return InsightResult(insights=lines[:MAX_INSIGHTS], source=SOURCE_AI)
