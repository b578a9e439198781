"""Room taxonomy for property shoots and the filename-safe room normalizer.

Room types are German display labels drawn from a closed list. Every label
maps to a canonical token (see `normalize_room_type`) which is what filenames,
counters and metadata records carry.
"""

from __future__ import annotations

from enum import Enum
import re
import unicodedata

ROOM_CATEGORIES: dict[str, str] = {
    "wohnbereiche": "Wohnbereiche",
    "schlafbereiche": "Schlafbereiche",
    "sanitaer": "Sanitär",
    "arbeit_hobby": "Arbeit/Hobby",
    "aussenbereiche": "Außenbereiche",
    "nebenraeume": "Nebenräume",
    "keller_dach": "Keller/Dach",
    "aussenansichten": "Außenansichten",
    "sonstiges": "Sonstiges",
}

# Display label -> category key, in UI order
ROOM_TO_CATEGORY: dict[str, str] = {
    "Wohnzimmer": "wohnbereiche",
    "Esszimmer": "wohnbereiche",
    "Küche": "wohnbereiche",
    "Offene Küche": "wohnbereiche",
    "Essbereich": "wohnbereiche",
    "Flur/Eingang": "wohnbereiche",
    "Diele": "wohnbereiche",
    "Galerie": "wohnbereiche",
    "Wintergarten": "wohnbereiche",
    "Schlafzimmer": "schlafbereiche",
    "Hauptschlafzimmer": "schlafbereiche",
    "Kinderzimmer": "schlafbereiche",
    "Gästezimmer": "schlafbereiche",
    "Ankleidezimmer": "schlafbereiche",
    "Badezimmer": "sanitaer",
    "Gästebad": "sanitaer",
    "Gäste-WC": "sanitaer",
    "Hauptbad": "sanitaer",
    "En-Suite Bad": "sanitaer",
    "WC": "sanitaer",
    "Sauna": "sanitaer",
    "Wellness": "sanitaer",
    "Arbeitszimmer": "arbeit_hobby",
    "Homeoffice": "arbeit_hobby",
    "Bibliothek": "arbeit_hobby",
    "Hobbyraum": "arbeit_hobby",
    "Atelier": "arbeit_hobby",
    "Balkon": "aussenbereiche",
    "Terrasse": "aussenbereiche",
    "Loggia": "aussenbereiche",
    "Dachterrasse": "aussenbereiche",
    "Garten": "aussenbereiche",
    "Innenhof": "aussenbereiche",
    "Pool": "aussenbereiche",
    "Poolhaus": "aussenbereiche",
    "Abstellraum": "nebenraeume",
    "Hauswirtschaftsraum": "nebenraeume",
    "Waschküche": "nebenraeume",
    "Speisekammer": "nebenraeume",
    "Garderobe": "nebenraeume",
    "Keller": "keller_dach",
    "Weinkeller": "keller_dach",
    "Fitnessraum": "keller_dach",
    "Partyraum": "keller_dach",
    "Dachboden": "keller_dach",
    "Außenansicht Vorne": "aussenansichten",
    "Außenansicht Hinten": "aussenansichten",
    "Außenansicht Seitlich": "aussenansichten",
    "Fassade": "aussenansichten",
    "Eingangsbereich": "aussenansichten",
    "Carport": "aussenansichten",
    "Garage": "aussenansichten",
    "Stellplatz": "aussenansichten",
    "Treppenhaus": "sonstiges",
    "Gemeinschaftsraum": "sonstiges",
    "Sonstiges": "sonstiges",
}

ALL_ROOM_TYPES: tuple[str, ...] = tuple(ROOM_TO_CATEGORY)

DEFAULT_ROOM_TYPE = "Sonstiges"

KEYBOARD_SHORTCUTS: dict[str, str] = {
    "1": "Wohnzimmer",
    "2": "Schlafzimmer",
    "3": "Küche",
    "4": "Badezimmer",
    "5": "Esszimmer",
    "6": "Balkon",
    "7": "Terrasse",
    "8": "Garten",
    "9": "Außenansicht Vorne",
    "0": "Sonstiges",
}


class Orientation(str, Enum):
    """Camera orientation relative to the building; metadata only."""

    FRONT = "front"
    SIDE = "side"
    BACK = "back"


# Applied before NFD so umlauts do not collapse to bare vowels
_GERMAN_FOLDS = (("ä", "ae"), ("ö", "oe"), ("ü", "ue"), ("ß", "ss"))
_SEPARATOR_RUNS = re.compile(r"[\s/]+")
_DISALLOWED = re.compile(r"[^a-z0-9-]")
_HYPHEN_RUNS = re.compile(r"-{2,}")


def normalize_room_type(label: str) -> str:
    """Map a room display label to its canonical filename token.

    The result only contains ``[a-z0-9-]`` with no leading, trailing or
    repeated hyphens, which makes the function idempotent.

    Examples:
        >>> normalize_room_type("Gäste-WC")
        'gaeste-wc'
        >>> normalize_room_type("Außenansicht Vorne")
        'aussenansicht-vorne'
    """
    text = unicodedata.normalize("NFC", label).lower()
    for src, dst in _GERMAN_FOLDS:
        text = text.replace(src, dst)
    text = unicodedata.normalize("NFD", text)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = _SEPARATOR_RUNS.sub("-", text)
    text = _DISALLOWED.sub("", text)
    return _HYPHEN_RUNS.sub("-", text).strip("-")


_LABEL_BY_TOKEN: dict[str, str] = {normalize_room_type(r): r for r in ALL_ROOM_TYPES}


def is_valid_room_type(value: str) -> bool:
    """True if `value` is one of the known display labels."""
    return value in ROOM_TO_CATEGORY


def get_room_category(room_type: str) -> str | None:
    """Return the category key for a label or token, or None if unknown."""
    label = room_label_for(room_type)
    return ROOM_TO_CATEGORY.get(label) if label else None


def room_label_for(value: str) -> str | None:
    """Resolve a display label or a normalized token to the display label."""
    if value in ROOM_TO_CATEGORY:
        return value
    return _LABEL_BY_TOKEN.get(normalize_room_type(value))


def rooms_by_category() -> dict[str, list[str]]:
    """Group all labels by category key, keeping taxonomy order."""
    groups: dict[str, list[str]] = {key: [] for key in ROOM_CATEGORIES}
    for room, category in ROOM_TO_CATEGORY.items():
        groups[category].append(room)
    return groups


def get_shortcut_for_room(room_type: str) -> str | None:
    for key, room in KEYBOARD_SHORTCUTS.items():
        if room == room_type:
            return key
    return None
