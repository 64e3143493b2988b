import re
import logging
from typing import Optional

from guidance.profile import StudentProfile


logger = logging.getLogger(__name__)

MAX_QUESTION_CHARS = 1000

QUICK_QUESTIONS = [
    "What skills should I develop?",
    "What's the salary range?",
    "Which companies should I target?",
    "How long will it take?",
]

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s+")


def clean_inline(text: Optional[str], limit: Optional[int] = None) -> str:
    """Strip control characters and fold all whitespace onto a single line"""
    text = _CONTROL_CHARS.sub("", text or "")
    text = _WHITESPACE.sub(" ", text).strip()
    if limit is not None and len(text) > limit:
        text = text[:limit].rstrip()
    return text


class CareerGuidancePrompts:
    """Prompt templates for follow-up career questions"""

    # ==================== GUIDANCE PROMPT ====================
    GUIDANCE_PROMPT = """You are an AI Career Guidance Counselor. Based on the following student profile, provide personalized career advice for their question.

Student Profile:
- Name: {name}
- Education: {education}
- Interests: {interests}
- Skills: {skills}
- Career Goals: {career_goals}

Student Question: {question}

IMPORTANT: Format your response in this specific style:

1. Start with a friendly opening line (short, motivational, with emoji). Address them by name.

2. Break down insights into clear sections with emoji headers like:
   🔎 Role Insights
   📍 Location Factor
   🏢 Company Type
   📈 Experience Level
   💼 Skills Needed
   🎯 Career Paths
   📚 Learning Resources

3. Use bullet points or short lines (max 5-6 lines per section)

4. Highlight key terms with bold using **term** or add relevant emojis for quick scanning

5. End with a short, actionable step they can take next

Keep it encouraging, clear, and visually clean. Think like a helpful career coach, not a formal advisor."""

    @staticmethod
    def compose(profile: StudentProfile, question: str) -> str:
        """Build the full prompt for one question; earlier turns are not included"""
        prompt = CareerGuidancePrompts.GUIDANCE_PROMPT.format(
            name=clean_inline(profile.name),
            education=clean_inline(profile.education),
            interests=", ".join(clean_inline(i) for i in profile.interests),
            skills=", ".join(clean_inline(s) for s in profile.skills),
            career_goals=clean_inline(profile.career_goals),
            question=clean_inline(question, limit=MAX_QUESTION_CHARS),
        )
        logger.debug(f" Composed guidance prompt ({len(prompt)} chars)")
        return prompt


def compose(profile: StudentProfile, question: str) -> str:
    return CareerGuidancePrompts.compose(profile, question)
