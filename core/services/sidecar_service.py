"""Sidecar metadata (object_meta.json) and German alt-text generation.

Each delivered image gets one structured record and one caption line. The
record is validated in two tiers: identity fields are errors and block
delivery, descriptive camera fields are warnings and never do.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
import json

from core.models import DeviceInfo, GeoLocation, ObjectMeta, ShootInfo
from core.rooms import Orientation, normalize_room_type, room_label_for
from core.services.filename_codec import extract_base_name, parse_raw_frame_filename
from core.services.interfaces import RenamePreviewEntry, ValidationReport

# Keyed by normalized room token
GERMAN_ALT_TEXT_PROMPTS: dict[str, str] = {
    "wohnzimmer": "Modernes Wohnzimmer mit komfortabler Sitzgelegenheit und natürlichem Lichteinfall",
    "esszimmer": "Einladendes Esszimmer mit eleganter Tischdekoration und stimmungsvoller Beleuchtung",
    "wintergarten": "Heller Wintergarten mit Pflanzen und viel Tageslicht",
    "schlafzimmer": "Ruhiges Schlafzimmer mit komfortablem Bett und sanfter Beleuchtung",
    "kinderzimmer": "Fröhliches Kinderzimmer mit bunten Farben und organisiertem Stauraum",
    "kueche": "Moderne Küche mit hochwertigen Geräten und funktionaler Aufteilung",
    "offene-kueche": "Offene Küche mit fließendem Übergang in den Wohnbereich",
    "badezimmer": "Sauberes modernes Badezimmer mit hochwertigen Armaturen und guter Beleuchtung",
    "gaeste-wc": "Kompaktes Gäste-WC mit elegantem Design und praktischer Aufteilung",
    "arbeitszimmer": "Funktionales Arbeitszimmer mit Schreibtisch, Stauraum und gutem Tageslicht",
    "flur-eingang": "Einladender Flur mit guter Beleuchtung und funktionalem Design",
    "treppenhaus": "Elegantes Treppenhaus mit hochwertigen Materialien und passender Beleuchtung",
    "eingangsbereich": "Einladender Eingangsbereich mit starker visueller Wirkung",
    "abstellraum": "Praktischer Abstellraum mit organisiertem Regalsystem und guter Zugänglichkeit",
    "keller": "Sauberer Kellerraum mit ordentlicher Beleuchtung und trockenen Bedingungen",
    "garage": "Sichere Garage mit praktischer Aufteilung und ausreichend Platz",
    "stellplatz": "Gepflegter Stellplatz mit klarem Zugang und Markierungen",
    "balkon": "Ansprechender Balkon mit attraktiver Aussicht und nutzbarem Außenbereich",
    "terrasse": "Einladende Terrasse ideal für Outdoor-Living und Unterhaltung",
    "garten": "Gepflegter Garten mit attraktiver Bepflanzung und Außengestaltung",
    "fassade": "Beeindruckende Gebäudefassade mit architektonischen Details",
}

DEFAULT_ALT_TEXT = "Professionelle Immobilienaufnahme mit ausgewogener Belichtung"

ORIENTATION_QUALIFIERS: dict[Orientation, str] = {
    Orientation.FRONT: "Vorderansicht",
    Orientation.SIDE: "Seitenansicht",
    Orientation.BACK: "Rückansicht",
}

_ORIENTATIONS = tuple(o.value for o in Orientation)


@dataclass
class AltTextEntry:
    filename: str
    room_type: str
    orientation: Orientation | str | None = None


def _orientation_value(orientation: Orientation | str | None) -> str | None:
    if not orientation:
        return None
    return Orientation(orientation).value


def _stored_orientation(orientation: Orientation | str | None) -> str | None:
    if not orientation:
        return None
    return orientation.value if isinstance(orientation, Orientation) else orientation


def generate_object_meta(
    *,
    job_id: str,
    display_id: str,
    date: str,
    shoot_code: str,
    room_type: str,
    merged_filename: str | None,
    version: int,
    source_filenames: Iterable[str] | None = None,
    user_code: str | None = None,
    orientation: Orientation | str | None = None,
    lens: str | None = None,
    ev: float | None = None,
    wb_mode: str | None = None,
    wb_kelvin: int | None = None,
    hdr_brackets: int | None = None,
    file_format: str | None = None,
    capture_time: datetime | str | None = None,
    device_info: DeviceInfo | None = None,
    location: GeoLocation | None = None,
) -> ObjectMeta:
    """Assemble the sidecar record; absent optional values stay None.

    Never raises: values are stored as given and judged by
    `validate_object_meta`.
    """
    if isinstance(capture_time, datetime):
        capture_time = capture_time.isoformat()
    return ObjectMeta(
        job_id=job_id,
        display_id=display_id,
        date=date,
        shoot_code=shoot_code,
        room_type=normalize_room_type(room_type) if room_type else room_type,
        merged_filename=merged_filename,
        version=version,
        source_filenames=list(source_filenames or []),
        user_code=user_code,
        orientation=_stored_orientation(orientation),
        lens=lens,
        ev=ev,
        wb_mode=wb_mode,
        wb_kelvin=wb_kelvin,
        hdr_brackets=hdr_brackets,
        file_format=file_format,
        capture_time=capture_time,
        device_info=device_info,
        location=location,
    )


def object_meta_for_entry(shoot: ShootInfo, entry: RenamePreviewEntry, **details) -> ObjectMeta:
    """Build the record for one committed plan entry.

    `details` carries optional camera fields (lens, ev, capture_time, ...).
    The bracket count defaults to the number of planned raw frames.
    """
    details.setdefault("hdr_brackets", len(entry.frame_filenames) or None)
    details.setdefault("file_format", "jpeg")
    details.setdefault("user_code", shoot.user_code)
    return generate_object_meta(
        job_id=shoot.job_id,
        display_id=shoot.resolved_display_id,
        date=shoot.date,
        shoot_code=shoot.shoot_code,
        room_type=entry.room_type or "",
        merged_filename=entry.planned_filename,
        version=entry.version or 1,
        source_filenames=entry.frame_filenames,
        **details,
    )


def serialize_object_meta(meta: ObjectMeta) -> str:
    """Render the record as indented JSON (one document per delivered file)."""
    return json.dumps(meta.to_dict(), indent=2, ensure_ascii=False)


def parse_object_meta(text: str) -> ObjectMeta:
    """Read a record written by `serialize_object_meta`.

    Raises:
        ValueError: If `text` is not a JSON object.
    """
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("object_meta must be a JSON object")
    return ObjectMeta.from_dict(data)


def validate_object_meta(meta: ObjectMeta) -> ValidationReport:
    """Check a record for delivery.

    Missing identity fields and inconsistent source frames are errors.
    Missing descriptive fields are warnings only.
    """
    report = ValidationReport()
    errors = report.errors
    warnings = report.warnings

    if not meta.job_id:
        errors.append("job_id missing")
    if not meta.display_id:
        errors.append("display_id missing")
    if not meta.date:
        errors.append("date missing")
    if not meta.shoot_code:
        errors.append("shoot_code missing")
    if not meta.room_type:
        errors.append("room_type missing")
    if not meta.merged_filename:
        errors.append("filenames.merged missing")
    if meta.version is None:
        errors.append("version missing")
    elif not isinstance(meta.version, int) or isinstance(meta.version, bool):
        errors.append(f"version must be an integer, got {meta.version!r}")
    elif meta.version < 1:
        errors.append(f"version must be >= 1, got {meta.version}")

    if meta.merged_filename and not isinstance(meta.merged_filename, str):
        errors.append(f"filenames.merged must be a string, got {meta.merged_filename!r}")
    if meta.orientation is not None and meta.orientation not in _ORIENTATIONS:
        errors.append(f"orientation must be front, side or back, got {meta.orientation!r}")

    sources = meta.source_filenames
    if not isinstance(sources, list):
        errors.append(f"filenames.sources must be a list, got {sources!r}")
        sources = []
    merged_base = extract_base_name(meta.merged_filename) if meta.merged_filename else None
    for source in sources:
        if not isinstance(source, str):
            errors.append(f"source must be a string, got {source!r}")
        elif parse_raw_frame_filename(source) is None:
            errors.append(f"source is not a raw frame filename: {source}")
        elif meta.merged_filename and extract_base_name(source) != merged_base:
            errors.append(f"source {source} does not belong to {meta.merged_filename}")

    if not meta.user_code:
        warnings.append("user_code not set")
    if not meta.lens:
        warnings.append("lens not set")
    if meta.ev is None:
        warnings.append("ev not set")
    if not meta.wb_mode and not meta.wb_kelvin:
        warnings.append("wb_mode/wb_k not set")
    if meta.hdr_brackets is None:
        warnings.append("hdr_brackets not set")
    if not meta.file_format:
        warnings.append("file_format not set")
    if not meta.capture_time:
        warnings.append("capture_time not set")

    return report


def generate_german_alt_text(room_type: str, orientation: Orientation | str | None = None) -> str:
    """Compose the German caption for a room, e.g.
    ``Fassade (Vorderansicht) - Beeindruckende Gebäudefassade mit architektonischen Details``.

    Raises:
        ValueError: If `orientation` is not front, side or back.
    """
    label = room_label_for(room_type) or room_type
    description = GERMAN_ALT_TEXT_PROMPTS.get(normalize_room_type(room_type), DEFAULT_ALT_TEXT)
    value = _orientation_value(orientation)
    if value is None:
        return f"{label} - {description}"
    return f"{label} ({ORIENTATION_QUALIFIERS[Orientation(value)]}) - {description}"


def generate_alt_text_file(entries: Iterable[AltTextEntry]) -> str:
    """Render ``alt_text.txt``: one ``filename<TAB>alt text`` line per entry."""
    return "\n".join(
        f"{e.filename}\t{generate_german_alt_text(e.room_type, e.orientation)}" for e in entries
    )
