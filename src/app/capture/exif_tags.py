"""
Embedded-tag codec for inspection photos.

Every finalized JPEG carries its own record in EXIF:

- ``0th.DateTime``: capture time, ``yyyy:MM:dd HH:mm:ss`` in the local zone
- ``0th.ImageDescription``: ``"<project> | <valuer>[ | <company>]"``
- ``Exif.UserComment``: ``project=..;client=..;valuer=..;company=..``
- ``GPS``: DMS latitude/longitude rationals, altitude, image direction

Values inside the UserComment payload are written verbatim. A ``;`` inside a
value splits it on read, so such values do not survive recovery.
"""
import logging
import math
from datetime import datetime, timezone
from fractions import Fraction
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import piexif
from piexif.helper import UserComment

from app.common.errors import TagWriteError
from app.models.photo import PhotoMetadata, ProjectInfo

logger = logging.getLogger(__name__)

EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"
DESCRIPTION_SEPARATOR = " | "
PAYLOAD_SEPARATOR = ";"
PAYLOAD_KEYS = ("project", "client", "valuer", "company")

SECONDS_DENOMINATOR = 10000
ALTITUDE_DENOMINATOR = 100
BEARING_REFERENCE = b"T"  # true north

Rational = Tuple[int, int]


# ---------------------------------------------------------------------------
# Text tags
# ---------------------------------------------------------------------------
def format_exif_datetime(timestamp: datetime) -> str:
    """Formats an instant as EXIF wall-clock time in the system time zone."""
    return timestamp.astimezone().strftime(EXIF_DATETIME_FORMAT)


def parse_exif_datetime(raw: Union[bytes, str, None]) -> Optional[datetime]:
    if not raw:
        return None
    try:
        text = raw.decode("ascii") if isinstance(raw, bytes) else raw
        naive = datetime.strptime(text.strip("\x00 "), EXIF_DATETIME_FORMAT)
    except (UnicodeDecodeError, ValueError):
        return None
    # Naive wall-clock time is interpreted in the system time zone
    return naive.astimezone()


def build_description(info: ProjectInfo) -> str:
    parts = [info.project_name, info.valuer_name]
    if info.company_name.strip():
        parts.append(info.company_name)
    return DESCRIPTION_SEPARATOR.join(parts)


def build_user_comment(info: ProjectInfo) -> str:
    values = (info.project_name, info.client_name, info.valuer_name, info.company_name)
    return PAYLOAD_SEPARATOR.join(f"{key}={value}" for key, value in zip(PAYLOAD_KEYS, values))


def parse_user_comment(comment: Optional[str]) -> ProjectInfo:
    """
    Parses the UserComment payload back into a ProjectInfo.

    Unknown keys are ignored, missing keys default to "" and segments without
    a ``=`` are dropped. Never raises.
    """
    if comment is None or not comment.strip():
        return ProjectInfo()

    values: Dict[str, str] = {}
    for segment in comment.split(PAYLOAD_SEPARATOR):
        key, sep, value = segment.partition("=")
        if sep:
            values[key] = value

    return ProjectInfo(
        project_name=values.get("project", ""),
        client_name=values.get("client", ""),
        valuer_name=values.get("valuer", ""),
        company_name=values.get("company", ""),
    )


def _decode_ascii(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace").rstrip("\x00")
    return str(value) if value is not None else ""


def _decode_user_comment(value: Any) -> Optional[str]:
    if not value:
        return None
    try:
        return UserComment.load(value)
    except ValueError:
        # No charset prefix; some writers store plain ASCII
        logger.debug("UserComment without a known charset prefix, decoding as plain text")
        return _decode_ascii(value)


# ---------------------------------------------------------------------------
# GPS rationals
# ---------------------------------------------------------------------------
def to_dms(coordinate: float) -> Tuple[int, int, float]:
    absolute = abs(coordinate)
    degrees = math.floor(absolute)
    minutes_full = (absolute - degrees) * 60
    minutes = math.floor(minutes_full)
    seconds = (minutes_full - minutes) * 60
    return int(degrees), int(minutes), seconds


def coordinate_to_rationals(coordinate: float) -> Tuple[Rational, Rational, Rational]:
    degrees, minutes, seconds = to_dms(coordinate)
    return (
        (degrees, 1),
        (minutes, 1),
        (int(round(seconds * SECONDS_DENOMINATOR)), SECONDS_DENOMINATOR),
    )


def rational_to_float(value: Any) -> Optional[float]:
    if not isinstance(value, (tuple, list)) or len(value) != 2:
        return None
    num, den = value
    if den == 0:
        return None
    result = float(num) / float(den)
    return result if math.isfinite(result) else None


def rationals_to_coordinate(value: Any, ref: Any) -> Optional[float]:
    """Decodes a DMS rational triple; the hemisphere ref is mandatory."""
    if not value or not ref:
        return None
    try:
        degrees, minutes, seconds = (rational_to_float(part) for part in value)
    except (TypeError, ValueError):
        return None
    if degrees is None or minutes is None or seconds is None:
        return None

    result = degrees + minutes / 60.0 + seconds / 3600.0
    ref_text = _decode_ascii(ref).strip().upper()
    if ref_text in ("S", "W"):
        return -result
    if ref_text in ("N", "E"):
        return result
    return None


def altitude_to_rational(altitude: float) -> Tuple[Rational, int]:
    """Returns the altitude rational and its ref (0 above, 1 below sea level)."""
    ref = 0 if altitude >= 0 else 1
    return (int(round(abs(altitude) * ALTITUDE_DENOMINATOR)), ALTITUDE_DENOMINATOR), ref


def format_bearing(bearing: float) -> str:
    """Plain decimal string of a bearing, at most four fractional digits."""
    text = f"{bearing:.4f}".rstrip("0").rstrip(".")
    return text or "0"


def decimal_to_rational(text: str) -> Rational:
    fraction = Fraction(text)
    return fraction.numerator, fraction.denominator


# ---------------------------------------------------------------------------
# Whole-file encode / decode
# ---------------------------------------------------------------------------
def apply_metadata(exif_dict: Dict[str, Any], metadata: PhotoMetadata) -> Dict[str, Any]:
    """Writes the capture tags into a piexif dictionary in place and returns it."""
    zeroth = exif_dict.setdefault("0th", {})
    exif = exif_dict.setdefault("Exif", {})
    gps = exif_dict.setdefault("GPS", {})

    zeroth[piexif.ImageIFD.DateTime] = format_exif_datetime(metadata.timestamp).encode("ascii")
    zeroth[piexif.ImageIFD.ImageDescription] = build_description(metadata.project_info).encode("utf-8")
    exif[piexif.ExifIFD.UserComment] = UserComment.dump(
        build_user_comment(metadata.project_info), encoding="unicode"
    )

    location = metadata.location
    if location is not None:
        gps[piexif.GPSIFD.GPSLatitude] = coordinate_to_rationals(location.latitude)
        gps[piexif.GPSIFD.GPSLatitudeRef] = b"N" if location.latitude >= 0 else b"S"
        gps[piexif.GPSIFD.GPSLongitude] = coordinate_to_rationals(location.longitude)
        gps[piexif.GPSIFD.GPSLongitudeRef] = b"E" if location.longitude >= 0 else b"W"

        if location.altitude is not None:
            rational, ref = altitude_to_rational(location.altitude)
            gps[piexif.GPSIFD.GPSAltitude] = rational
            gps[piexif.GPSIFD.GPSAltitudeRef] = ref

        if metadata.bearing is not None:
            gps[piexif.GPSIFD.GPSImgDirection] = decimal_to_rational(format_bearing(metadata.bearing))
            gps[piexif.GPSIFD.GPSImgDirectionRef] = BEARING_REFERENCE

    return exif_dict


def write_tags(path: Path, metadata: PhotoMetadata) -> None:
    """Writes the capture tags into the JPEG at ``path`` in place."""
    try:
        exif_dict = piexif.load(str(path))
        # Embedded thumbnails of the raw capture no longer match the stamped pixels
        exif_dict.pop("thumbnail", None)
        exif_dict["1st"] = {}
        apply_metadata(exif_dict, metadata)
        piexif.insert(piexif.dump(exif_dict), str(path))
    except Exception as e:
        raise TagWriteError(f"Failed to write EXIF tags to {path}: {e}") from e
    logger.debug(f"EXIF tags written to {path}")


def read_tags(path: Path) -> Dict[str, Any]:
    """Loads the raw piexif dictionary; raises if the file has no parsable EXIF container."""
    return piexif.load(str(path))


def decode_tags(exif_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Decodes the capture fields from a piexif dictionary.

    Returns keys ``timestamp``, ``latitude``, ``longitude``, ``altitude``,
    ``bearing`` and ``project_info``; absent values are None.
    """
    zeroth = exif_dict.get("0th") or {}
    exif = exif_dict.get("Exif") or {}
    gps = exif_dict.get("GPS") or {}

    latitude = rationals_to_coordinate(gps.get(piexif.GPSIFD.GPSLatitude), gps.get(piexif.GPSIFD.GPSLatitudeRef))
    longitude = rationals_to_coordinate(gps.get(piexif.GPSIFD.GPSLongitude), gps.get(piexif.GPSIFD.GPSLongitudeRef))
    if latitude is None or longitude is None:
        latitude = longitude = None

    altitude = rational_to_float(gps.get(piexif.GPSIFD.GPSAltitude))
    if altitude is not None:
        alt_ref = gps.get(piexif.GPSIFD.GPSAltitudeRef)
        if alt_ref in (1, b"\x01", b"1"):
            altitude = -altitude
        if altitude == 0.0:
            altitude = None

    return {
        "timestamp": parse_exif_datetime(zeroth.get(piexif.ImageIFD.DateTime)),
        "latitude": latitude,
        "longitude": longitude,
        "altitude": altitude,
        "bearing": rational_to_float(gps.get(piexif.GPSIFD.GPSImgDirection)),
        "project_info": parse_user_comment(_decode_user_comment(exif.get(piexif.ExifIFD.UserComment))),
    }


def file_mtime(path: Path) -> datetime:
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc).astimezone()
