"""Performance score and badge rules for students."""

from __future__ import annotations

from dataclasses import dataclass

# Points per solved problem by difficulty, and per GitHub contribution / star
EASY_POINTS = 1
MEDIUM_POINTS = 3
HARD_POINTS = 5
CONTRIBUTION_POINTS = 0.2
STAR_POINTS = 5


@dataclass
class BadgeDef:
    id: str
    name: str
    description: str
    target: float
    check_field: str


@dataclass
class BadgeStatus:
    definition: BadgeDef
    progress: float  # 0.0 to 1.0
    earned: bool


BADGES: list[BadgeDef] = [
    BadgeDef(
        id="top_solver",
        name="Top Solver",
        description="Solve 100 LeetCode problems",
        target=100,
        check_field="total_solved",
    ),
    BadgeDef(
        id="problem_solver",
        name="Problem Solver",
        description="Solve 50 LeetCode problems",
        target=50,
        check_field="total_solved",
    ),
    BadgeDef(
        id="streak_master",
        name="Streak Master",
        description="Keep a 30-day streak on LeetCode or GitHub",
        target=30,
        check_field="best_current_streak",
    ),
    BadgeDef(
        id="open_source_hero",
        name="Open Source Hero",
        description="Make 500 GitHub contributions",
        target=500,
        check_field="github_contributions",
    ),
    BadgeDef(
        id="open_source_enthusiast",
        name="Open Source Enthusiast",
        description="Make 300 GitHub contributions",
        target=300,
        check_field="github_contributions",
    ),
]


def performance_score(
    easy: int = 0,
    medium: int = 0,
    hard: int = 0,
    contributions: int = 0,
    stars: int = 0,
) -> int:
    """Weighted score: problem difficulty plus GitHub contributions and stars."""
    leetcode_score = easy * EASY_POINTS + medium * MEDIUM_POINTS + hard * HARD_POINTS
    github_score = contributions * CONTRIBUTION_POINTS + stars * STAR_POINTS
    return round(leetcode_score + github_score)


def check_badges(stats: dict) -> list[BadgeStatus]:
    """Evaluate every badge against current stats.

    stats dict should have keys matching check_field values:
    - total_solved: int
    - best_current_streak: int (max of LeetCode and GitHub current streaks)
    - github_contributions: int

    Badges are regenerated from scratch on each call; nothing is sticky.
    """
    results: list[BadgeStatus] = []
    for badge in BADGES:
        value = stats.get(badge.check_field, 0)
        progress = min(value / badge.target, 1.0) if badge.target > 0 else 0.0
        results.append(BadgeStatus(definition=badge, progress=progress, earned=progress >= 1.0))
    return results


def earned_badges(stats: dict) -> list[str]:
    return [s.definition.name for s in check_badges(stats) if s.earned]
