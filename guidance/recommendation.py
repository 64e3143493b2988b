import logging
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field

from guidance.profile import StudentProfile


logger = logging.getLogger(__name__)

Level = Literal["Beginner", "Intermediate", "Advanced"]
Rating = Literal["High", "Medium", "Low"]
CourseKind = Literal["Free", "Paid"]


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CareerPath(_WireModel):
    title: str
    description: str
    match_percent: int = Field(alias="matchPercent", ge=0, le=100)


class RequiredSkill(_WireModel):
    skill: str
    level: Level
    priority: Rating


class Course(_WireModel):
    title: str
    provider: str
    duration: str
    kind: CourseKind


class MarketInsights(_WireModel):
    average_salary_range: str = Field(alias="averageSalaryRange")
    demand_level: Rating = Field(alias="demandLevel")
    growth_rate: str = Field(alias="growthRate")
    locations: List[str]


class RoadmapPhase(_WireModel):
    phase: str
    duration: str
    tasks: List[str]


class StructuredRecommendation(_WireModel):
    """Career guidance payload rendered alongside the seed message"""
    career_paths: List[CareerPath] = Field(alias="careerPaths")
    required_skills: List[RequiredSkill] = Field(alias="requiredSkills")
    courses: List[Course]
    market_insights: MarketInsights = Field(alias="marketInsights")
    roadmap: List[RoadmapPhase]

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


# ==================== SAMPLE DATA ====================
# Illustrative values, identical for every profile.

SAMPLE_RECOMMENDATION = {
    "careerPaths": [
        {
            "title": "Data Science & AI",
            "description": "Combine your interests in technology and analytics to build intelligent systems",
            "matchPercent": 92,
        },
        {
            "title": "Product Management",
            "description": "Bridge technology and business to create innovative solutions",
            "matchPercent": 85,
        },
        {
            "title": "UX/UI Design",
            "description": "Create user-centered digital experiences and interfaces",
            "matchPercent": 78,
        },
    ],
    "requiredSkills": [
        {"skill": "Python Programming", "level": "Intermediate", "priority": "High"},
        {"skill": "Data Analysis", "level": "Advanced", "priority": "High"},
        {"skill": "Machine Learning", "level": "Beginner", "priority": "Medium"},
        {"skill": "Statistical Analysis", "level": "Intermediate", "priority": "High"},
        {"skill": "Business Communication", "level": "Intermediate", "priority": "Medium"},
    ],
    "courses": [
        {"title": "Python for Data Science", "provider": "Coursera", "duration": "6 weeks", "kind": "Paid"},
        {"title": "Introduction to Machine Learning", "provider": "edX", "duration": "8 weeks", "kind": "Free"},
        {"title": "Data Visualization", "provider": "Udacity", "duration": "4 weeks", "kind": "Paid"},
    ],
    "marketInsights": {
        "averageSalaryRange": "$75,000 - $120,000",
        "demandLevel": "High",
        "growthRate": "+22% (Next 5 years)",
        "locations": ["San Francisco", "New York", "Seattle", "Austin", "Boston"],
    },
    "roadmap": [
        {
            "phase": "Foundation (0-3 months)",
            "duration": "3 months",
            "tasks": ["Learn Python basics", "Statistics fundamentals", "Excel proficiency", "SQL basics"],
        },
        {
            "phase": "Specialization (3-9 months)",
            "duration": "6 months",
            "tasks": ["Advanced Python", "Machine Learning course", "Data visualization", "Portfolio projects"],
        },
        {
            "phase": "Professional (9-12 months)",
            "duration": "3 months",
            "tasks": ["Internship/Entry role", "Industry certifications", "Networking", "Advanced projects"],
        },
    ],
}


def build_seed_recommendation(profile: StudentProfile) -> StructuredRecommendation:
    """Return the sample recommendation shown with the seed message (not personalized)"""
    recommendation = StructuredRecommendation.model_validate(SAMPLE_RECOMMENDATION)
    logger.info(f" Built seed recommendation for {profile.name}: {len(recommendation.career_paths)} career paths")
    return recommendation


def build_greeting(profile: StudentProfile) -> str:
    """Seed message text addressed to the student"""
    interests = ", ".join(profile.interests[:3])
    return (
        f"Hello {profile.name}! 👋 I've analyzed your profile and I'm excited to help you explore "
        f"career opportunities that align with your interests in {interests} and your background "
        f"in {profile.education}.\n\n"
        "Based on your profile, I've identified some excellent career paths for you. "
        "Let me share my recommendations:"
    )
