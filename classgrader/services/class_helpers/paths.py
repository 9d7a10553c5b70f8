# /classgrader/services/class_helpers/paths.py

"""Store paths for the professor-owned roster tree."""

from ..database_helpers.tree_paths import join_path


def classes_path(professor_id: str) -> str:
    return join_path("professors", professor_id, "classes")


def class_path(professor_id: str, class_id: str) -> str:
    return join_path(classes_path(professor_id), class_id)


def students_path(professor_id: str, class_id: str) -> str:
    return join_path(class_path(professor_id, class_id), "students")


def student_path(professor_id: str, class_id: str, student_key: str) -> str:
    return join_path(students_path(professor_id, class_id), student_key)


def activities_path(professor_id: str, class_id: str) -> str:
    return join_path(class_path(professor_id, class_id), "activities")


def activity_path(professor_id: str, class_id: str, activity_id: str) -> str:
    return join_path(activities_path(professor_id, class_id), activity_id)


def score_path(professor_id: str, class_id: str, student_key: str, activity_id: str) -> str:
    return join_path(student_path(professor_id, class_id, student_key), "scores", activity_id)
