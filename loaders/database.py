import logging
import sqlite3
from typing import Dict, List, Optional

from errors import SourceError
from records import PhoneRecord, DEVICE_MODEL_FLAGS, LOCAL_ONLY_RING_GROUP
from utils.phone import is_valid_extension, normalize_mac_address
logger = logging.getLogger(__name__)


PROFILES_WITH_LOCATIONS_SQL = """
    SELECT
        p.id, p.name, p.email, p.device, p.location_id, p.internal_number,
        p.external_number, p.ring_group, p.pickup_group, p.is_active,
        l.name AS location_name, l.server, l.subnet, l.voip_vlan, l.vlan
    FROM profiles AS p
    LEFT JOIN locations AS l ON p.location_id = l.id
    WHERE p.is_active = 1
    ORDER BY p.id
"""

DEVICES_SQL = "SELECT mac, device_model FROM devices"


def _str_or_empty(value) -> str:
    return "" if value is None else str(value)


def _ring_group(value) -> str:
    # NULL and 0 both mean "no external routing"
    if value is None or str(value).strip() in ("", "0"):
        return LOCAL_ONLY_RING_GROUP
    return str(value)


def profile_to_record(row: Dict, device_models: Dict[str, str]) -> Optional[PhoneRecord]:
    """Convert one joined profile row; None when it cannot be placed on a network."""
    if row.get("location_name") is None or row.get("server") is None or row.get("subnet") is None:
        return None

    extension = _str_or_empty(row.get("internal_number")).strip()
    if not is_valid_extension(extension):
        return None

    flags = {}
    mac = normalize_mac_address(_str_or_empty(row.get("device")))
    if mac:
        flag = DEVICE_MODEL_FLAGS.get(device_models.get(mac))
        if flag:
            flags[flag] = True

    return PhoneRecord(
        full_name=_str_or_empty(row.get("name")),
        email=_str_or_empty(row.get("email")),
        extension=extension,
        city_phone=_str_or_empty(row.get("external_number")),
        location=str(row["location_name"]),
        sip_server=str(row["server"]),
        subnet=str(row["subnet"]),
        voip_vlan=_str_or_empty(row.get("voip_vlan")),
        lan_vlan=_str_or_empty(row.get("vlan")),
        is_active=bool(row.get("is_active")),
        ring_group=_ring_group(row.get("ring_group")),
        pickup_group=_str_or_empty(row.get("pickup_group")),
        mac_address=mac,
        **flags,
    )


def _fetch_dicts(conn, sql: str) -> List[Dict]:
    cur = conn.cursor()
    try:
        cur.execute(sql)
        columns = [d[0] for d in cur.description]
        return [dict(zip(columns, row)) for row in cur.fetchall()]
    finally:
        cur.close()


def load_from_connection(conn) -> List[PhoneRecord]:
    """Build the record list from any DB-API connection holding the directory tables."""
    try:
        profiles = _fetch_dicts(conn, PROFILES_WITH_LOCATIONS_SQL)
        devices = _fetch_dicts(conn, DEVICES_SQL)
    except Exception as e:
        raise SourceError(f"cannot query directory: {e}") from e

    device_models = {normalize_mac_address(d["mac"]): d["device_model"] for d in devices if d.get("mac")}

    records: List[PhoneRecord] = []
    for row in profiles:
        record = profile_to_record(row, device_models)
        if record is None:
            logger.debug(f"Profile {row.get('id')}: no location/server/subnet or bad number, skipped")
            continue
        records.append(record)

    logger.info(f"Loaded {len(records)} records from database ({len(profiles)} active profiles)")
    return records


def load_database(path: str) -> List[PhoneRecord]:
    try:
        conn = sqlite3.connect(f"file:{path}?mode=ro", uri=True)
    except sqlite3.Error as e:
        raise SourceError(f"cannot open database {path}: {e}") from e
    try:
        return load_from_connection(conn)
    finally:
        conn.close()
