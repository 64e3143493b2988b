from typing import Any, Dict, List

from guidance.recommendation import StructuredRecommendation


def render_recommendation(recommendation: StructuredRecommendation) -> str:
    """Plain-text rendering of a structured recommendation"""
    lines: List[str] = ["💼 **Recommended Career Paths**"]
    for path in recommendation.career_paths:
        lines.append(f"• **{path.title}** ({path.match_percent}% Match)")
        lines.append(f"  {path.description}")

    insights = recommendation.market_insights
    lines += [
        "",
        "📈 **Market Insights**",
        f"• Average Salary: {insights.average_salary_range}",
        f"• Market Demand: {insights.demand_level}",
        f"• Growth Rate: {insights.growth_rate}",
        f"• Top Locations: {', '.join(insights.locations[:2])}",
    ]

    lines += ["", "📚 **Your Learning Roadmap**"]
    for phase in recommendation.roadmap:
        lines.append(f"**{phase.phase}** ({phase.duration})")
        lines.extend(f"  • {task}" for task in phase.tasks)

    return "\n".join(lines)


def render_message(message) -> str:
    """Message text, followed by its structured recommendation if it has one"""
    if message.structured is None:
        return message.text
    return f"{message.text}\n\n{render_recommendation(message.structured)}"


def message_payload(message) -> Dict[str, Any]:
    return {
        "id": message.id,
        "role": message.role,
        "text": message.text,
        "createdAt": message.created_at.isoformat(),
        "structured": message.structured.to_payload() if message.structured is not None else None,
        "rendered": render_message(message),
    }
