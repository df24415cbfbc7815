# modeforge/smart_namer.py

import re

MAX_SMART_NAME_LENGTH = 8

# Ordered: the first keyword found (substring match) wins, so specific concepts come first.
KEYWORD_MAP = (
    # Music
    ("guitar", "tuner"),
    ("piano", "piano"),
    ("tuner", "tuner"),
    ("music", "music"),

    # Fitness
    ("running", "runner"),
    ("run", "runner"),
    ("cycling", "cyclist"),
    ("bike", "cyclist"),
    ("bicycle", "cyclist"),
    ("fitness", "fitness"),
    ("workout", "fitness"),
    ("gym", "gym"),
    ("dumbbell", "lifter"),
    ("weight", "lifter"),
    ("sleep", "sleep"),

    # Tracking
    ("gps", "tracker"),
    ("asset", "tracker"),
    ("tracker", "tracker"),
    ("location", "tracker"),
    ("parking", "parking"),

    # Vehicles
    ("car", "vehicle"),
    ("vehicle", "vehicle"),

    # Safety
    ("helmet", "helmet"),
    ("safety", "safety"),

    # Home
    ("door", "door"),
    ("window", "window"),
    ("bathroom", "bath"),
    ("kitchen", "kitchen"),
    ("room", "room"),

    # Nature
    ("plant", "plant"),
    ("garden", "garden"),
    ("water", "hydrate"),
    ("weather", "weather"),
    ("temperature", "weather"),
    ("climate", "weather"),

    # Pets
    ("dog", "pet"),
    ("pet", "pet"),
    ("cat", "pet"),
    ("animal", "animal"),
)

FILLER_WORDS = frozenset({
    "the", "a", "an", "my", "your", "buddy", "helper", "assistant",
    "tracker", "monitor", "sensor", "detector", "indicator", "device",
})


def generate_smart_name(user_input: str) -> str:
    """
    Map a free-form device description to a short, stable identifier.

        "guitar helper"        -> "tuner"
        "running buddy"        -> "runner"
        "bathroom door"        -> "door"
        "smart espresso maker" -> "maker"

    Pure and deterministic; callers recompute it instead of storing the mapping.
    """
    text = (user_input or "").lower().strip()

    for keyword, short_name in KEYWORD_MAP:
        if keyword in text:
            return short_name

    # the LAST meaningful word usually names the thing ("garage opener" -> "opener")
    # tokens double as file names: keep them path-safe
    words = [re.sub(r"[^a-z0-9]", "", w) for w in text.split()]
    words = [w for w in words if len(w) > 2 and w not in FILLER_WORDS]
    if words:
        return words[-1][:MAX_SMART_NAME_LENGTH]

    return re.sub(r"[^a-z0-9]", "", text)[:MAX_SMART_NAME_LENGTH]


def capitalize(text: str) -> str:
    if not text:
        return ""
    return text[0].upper() + text[1:]


def class_name_for(smart_name: str, suffix: str = "Module") -> str:
    return f"{capitalize(smart_name)}{suffix}"


def is_valid_smart_name(name: str) -> bool:
    # smart names are joined into file paths; reject anything that could escape a directory
    return bool(name) and re.fullmatch(r"[A-Za-z0-9_-]{1,64}", name) is not None
