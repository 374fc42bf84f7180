GRADE_LEVELS = [
    "Creche",
    "Nursery 1",
    "Nursery 2",
    "KG 1",
    "KG 2",
    "Basic 1",
    "Basic 2",
    "Basic 3",
    "Basic 4",
    "Basic 5",
    "Basic 6",
    "JHS 1",
    "JHS 2",
    "JHS 3",
    "Graduated",
]

GRADUATED = GRADE_LEVELS[-1]


def next_grade(grade_level: str) -> str:
    """Next entry in the grade sequence; unknown and final grades are returned unchanged."""
    try:
        idx = GRADE_LEVELS.index(grade_level)
    except ValueError:
        return grade_level
    if idx >= len(GRADE_LEVELS) - 1:
        return grade_level
    return GRADE_LEVELS[idx + 1]
