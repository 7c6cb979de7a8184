"""Badge milestones: static rules mapping a counter threshold to a badge."""

from __future__ import annotations

from collections.abc import Collection, Iterable
from dataclasses import dataclass
from enum import Enum

from academy.users.service import UserCounters


class MilestoneType(str, Enum):
    LESSONS_COMPLETED = "lessons_completed"
    COURSES_COMPLETED = "courses_completed"


@dataclass(frozen=True)
class BadgeMilestone:
    """Static badge rule. ``key`` is the stable identity of the badge row."""

    key: str
    name: str
    description: str
    type: str
    threshold: int
    icon: str | None = None


BADGE_MILESTONES: tuple[BadgeMilestone, ...] = (
    BadgeMilestone(
        key="lessons_1",
        name="First Lesson",
        description="Complete your first lesson.",
        icon="\U0001F4D8",
        type=MilestoneType.LESSONS_COMPLETED,
        threshold=1,
    ),
    BadgeMilestone(
        key="lessons_5",
        name="Lesson Explorer",
        description="Complete 5 lessons.",
        icon="\U0001F9ED",
        type=MilestoneType.LESSONS_COMPLETED,
        threshold=5,
    ),
    BadgeMilestone(
        key="lessons_10",
        name="Lesson Apprentice",
        description="Complete 10 lessons.",
        icon="\U0001F9E0",
        type=MilestoneType.LESSONS_COMPLETED,
        threshold=10,
    ),
    BadgeMilestone(
        key="courses_1",
        name="First Course",
        description="Complete your first course.",
        icon="\U0001F393",
        type=MilestoneType.COURSES_COMPLETED,
        threshold=1,
    ),
    BadgeMilestone(
        key="courses_3",
        name="Course Collector",
        description="Complete 3 courses.",
        icon="\U0001F3C5",
        type=MilestoneType.COURSES_COMPLETED,
        threshold=3,
    ),
    BadgeMilestone(
        key="courses_5",
        name="Course Master",
        description="Complete 5 courses.",
        icon="\U0001F451",
        type=MilestoneType.COURSES_COMPLETED,
        threshold=5,
    ),
)


def qualifies(milestone: BadgeMilestone, counters: UserCounters) -> bool:
    """Unknown milestone types never qualify."""
    if milestone.type == MilestoneType.LESSONS_COMPLETED:
        return counters.lessons_completed >= milestone.threshold
    if milestone.type == MilestoneType.COURSES_COMPLETED:
        return counters.courses_completed >= milestone.threshold
    return False


def newly_qualified(
    counters: UserCounters,
    milestones: Iterable[BadgeMilestone],
    earned_keys: Collection[str],
) -> list[BadgeMilestone]:
    """Milestones the user meets now and has not been awarded yet."""
    return [m for m in milestones if m.key not in earned_keys and qualifies(m, counters)]
