import os

DEFAULT_STUDENTS = list(range(1, 24))
DEFAULT_JOB_TITLES = [
    "Line Leader",
    "Door Holder",
    "Caboose",
    "Calendar Helper",
    "Weather Reporter",
    "Pencil Monitor",
    "Snack Helper",
    "Table Washer",
    "Librarian",
    "Supply Manager",
    "Chair Stacker",
    "Plant Waterer",
    "Pet Helper",
    "Board Eraser",
    "Technology Helper",
    "Recycling Monitor",
    "Paper Passer",
    "Greeter",
    "Messenger",
    "Quiet Captain",
    "Time Keeper",
    "Flag Holder",
    "Classroom Helper",
]

# Number of most recent history entries a job must not appear in for a
# first-choice assignment.
DEFAULT_RECENT_WINDOW = 2


def _read_int_env(name: str, default: int, minimum: int = 0) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, value)


RECENT_WINDOW = _read_int_env("CLASSROOM_JOBS_RECENT_WINDOW", DEFAULT_RECENT_WINDOW)
DEFAULT_USER_ID = os.environ.get("CLASSROOM_JOBS_DEFAULT_USER", "default").strip() or "default"
MAX_USER_ID_LENGTH = 128
EXPORT_VERSION = 1
