"""Identifier and Value Normalization.

This module turns raw, importer-normalized event rows into the values the
registry works with:
1. Identifier cleanup (strip, stringify numeric IDs, drop empties)
2. Barcode derivation from the QR ID or the electronic ID
3. Candidate AnimalKey sets for matching
4. Lenient numeric/date/text coercion (failures become None)

Examples:
    >>> derive_barcode("982000123456789", None)
    '000123456789'
    >>> derive_barcode("982000123456789", "QR-77")
    'QR-77'
"""

import math
from datetime import date, datetime
from typing import Any, List, Mapping, NamedTuple, Optional

from animal_registry.models import Animal, AnimalKey, KeyType


BARCODE_LENGTH = 12

# Registration exports sometimes call the QR ID "qr"
QR_ID_FIELDS = ("qr", "qrid")

DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%m-%d-%Y", "%d/%m/%Y", "%Y/%m/%d")


class RecordIdentifiers(NamedTuple):
    """Identifiers carried by one event record."""
    eid: Optional[str] = None
    vid: Optional[str] = None
    qrid: Optional[str] = None
    barcode: Optional[str] = None
    tattoo: Optional[str] = None

    def is_empty(self) -> bool:
        return not any(self)


# =============================================================================
# Value Coercion
# =============================================================================

def clean_identifier(value: Any) -> Optional[str]:
    """Normalize a raw identifier value.

    Numeric IDs coerced to float by a spreadsheet reader come back as
    integers-as-text (982000123456789.0 -> "982000123456789").
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            value = int(value)
    text = str(value).strip()
    return text or None


def coerce_float(value: Any) -> Optional[float]:
    """Parse a measurement, returning None for blanks and garbage."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, str):
        s = value.strip()
        if s == "":
            return None
        try:
            result = float(s)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def coerce_date(value: Any) -> Optional[date]:
    """Parse a date from a date/datetime or common string formats."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    s = value.strip()
    if s == "":
        return None
    try:
        return datetime.fromisoformat(s).date()
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def coerce_text(value: Any) -> Optional[str]:
    """Strip text fields; blanks become None."""
    return clean_identifier(value)


# =============================================================================
# Identifiers
# =============================================================================

def record_identifiers(record: Mapping[str, Any]) -> RecordIdentifiers:
    """Extract identifiers from a raw event record."""
    qrid = None
    for name in QR_ID_FIELDS:
        qrid = clean_identifier(record.get(name))
        if qrid:
            break

    return RecordIdentifiers(
        eid=clean_identifier(record.get("eid")),
        vid=clean_identifier(record.get("vid")),
        qrid=qrid,
        barcode=clean_identifier(record.get("barcode")),
        tattoo=clean_identifier(record.get("tattoo")),
    )


def derive_barcode(eid: Optional[str], qrid: Optional[str]) -> Optional[str]:
    """Derive a barcode: the QR ID if present, else the last 12 characters of the EID.

    EIDs shorter than 12 characters yield no barcode.
    """
    if qrid:
        return qrid
    if eid and len(eid) >= BARCODE_LENGTH:
        return eid[-BARCODE_LENGTH:]
    return None


def candidate_keys(ids: RecordIdentifiers) -> List[AnimalKey]:
    """Keys a record can be matched on.

    The derived barcode is only a candidate when the record has no explicit
    barcode. Tattoo never takes part in matching.
    """
    keys = []
    if ids.eid:
        keys.append(AnimalKey(KeyType.ELECTRONIC_ID, ids.eid))
    if ids.vid:
        keys.append(AnimalKey(KeyType.VISUAL_ID, ids.vid))
    if ids.qrid:
        keys.append(AnimalKey(KeyType.QR_ID, ids.qrid))
    if ids.barcode:
        keys.append(AnimalKey(KeyType.BARCODE, ids.barcode))
    else:
        derived = derive_barcode(ids.eid, ids.qrid)
        if derived:
            keys.append(AnimalKey(KeyType.BARCODE, derived))
    return keys


def stored_keys(animal: Animal) -> List[AnimalKey]:
    """Keys an existing animal can be matched by (tattoo excluded)."""
    keys = []
    if animal.eid:
        keys.append(AnimalKey(KeyType.ELECTRONIC_ID, animal.eid))
    if animal.vid:
        keys.append(AnimalKey(KeyType.VISUAL_ID, animal.vid))
    if animal.qrid:
        keys.append(AnimalKey(KeyType.QR_ID, animal.qrid))
    if animal.barcode:
        keys.append(AnimalKey(KeyType.BARCODE, animal.barcode))
    return keys


def primary_key(ids: RecordIdentifiers) -> Optional[AnimalKey]:
    """The key a new animal is labelled with.

    Priority: EID, VID, QR ID, derived barcode, explicit barcode, tattoo.
    """
    if ids.eid:
        return AnimalKey(KeyType.ELECTRONIC_ID, ids.eid)
    if ids.vid:
        return AnimalKey(KeyType.VISUAL_ID, ids.vid)
    if ids.qrid:
        return AnimalKey(KeyType.QR_ID, ids.qrid)
    barcode = derive_barcode(ids.eid, ids.qrid) or ids.barcode
    if barcode:
        return AnimalKey(KeyType.BARCODE, barcode)
    if ids.tattoo:
        return AnimalKey(KeyType.TATTOO, ids.tattoo)
    return None
