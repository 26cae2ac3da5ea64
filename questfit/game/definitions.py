"""Static achievement catalogue."""

from __future__ import annotations

from dataclasses import dataclass

METRICS = (
    "totalWorkouts",
    "totalCalories",
    "totalDistanceKm",
    "totalDurationMinutes",
    "xp",
    "streakDays",
)


@dataclass(frozen=True)
class AchievementDefinition:
    id: str
    title: str
    description: str
    category: str  # workout | consistency | sleep | steps | rewards
    metric: str
    threshold: float
    points: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "metric": self.metric,
            "threshold": self.threshold,
            "points": self.points,
        }


ACHIEVEMENTS: tuple[AchievementDefinition, ...] = (
    AchievementDefinition(
        "first_workout", "First Steps", "Complete your first workout",
        "workout", "totalWorkouts", 1, 10,
    ),
    AchievementDefinition(
        "workouts_10", "Getting Serious", "Complete 10 workouts",
        "workout", "totalWorkouts", 10, 25,
    ),
    AchievementDefinition(
        "workouts_50", "Dedicated", "Complete 50 workouts",
        "workout", "totalWorkouts", 50, 75,
    ),
    AchievementDefinition(
        "calories_1000", "Burner", "Burn 1,000 kcal in total",
        "workout", "totalCalories", 1000, 20,
    ),
    AchievementDefinition(
        "calories_10000", "Furnace", "Burn 10,000 kcal in total",
        "workout", "totalCalories", 10000, 60,
    ),
    AchievementDefinition(
        "distance_10", "Explorer", "Cover 10 km in total",
        "steps", "totalDistanceKm", 10, 20,
    ),
    AchievementDefinition(
        "distance_100", "Voyager", "Cover 100 km in total",
        "steps", "totalDistanceKm", 100, 60,
    ),
    AchievementDefinition(
        "duration_600", "Ten Hours In", "Spend 600 minutes working out",
        "workout", "totalDurationMinutes", 600, 40,
    ),
    AchievementDefinition(
        "streak_7", "On A Roll", "Work out 7 days in a row",
        "consistency", "streakDays", 7, 30,
    ),
    AchievementDefinition(
        "streak_30", "Unstoppable", "Work out 30 days in a row",
        "consistency", "streakDays", 30, 100,
    ),
    AchievementDefinition(
        "xp_1000", "Rising Star", "Earn 1,000 XP",
        "rewards", "xp", 1000, 20,
    ),
    AchievementDefinition(
        "xp_10000", "Legend", "Earn 10,000 XP",
        "rewards", "xp", 10000, 80,
    ),
)
