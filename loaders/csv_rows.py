import csv
import logging
from typing import Iterable, List, Optional, Sequence

from errors import SourceError
from records import PhoneRecord
from utils.phone import is_valid_extension, is_truthy_flag, normalize_mac_address
logger = logging.getLogger(__name__)


# ========= Column layout (positional, 25 columns A..Y) =========
COL_FULL_NAME = 0
COL_POSITION = 1
COL_CITY_PHONE = 2
COL_EXTENSION = 3
COL_PICKUP_GROUP = 4
COL_RING_GROUP = 5
COL_T27 = 6
COL_T23 = 7
COL_RADIO = 8
COL_CISCO_FAX = 9
COL_ACTIVE = 10
COL_MAC = 11
COL_MOBILE = 12
COL_VOIP_VLAN = 13
COL_LAN_VLAN = 14
COL_LOCATION = 15
COL_SIP_SERVER = 16
COL_SUBNET = 17
COL_EMAIL = 18
COL_CONF_ROOM = 19
COL_VOICE_MENU = 20
COL_EXTRA_RING_GROUP = 21
COL_SPECIAL_PASS = 22
COL_TLS = 23
COL_FANVIL = 24

COLUMN_COUNT = 25
# Rows must reach the SIP server column; trailing optional columns may be cut off.
MIN_COLUMNS = COL_SIP_SERVER + 1


def _cell(row: Sequence[str], index: int) -> str:
    if index < len(row):
        return (row[index] or "").strip()
    return ""


def is_service_row(row: Sequence[str]) -> bool:
    """
    Section separators in the directory sheet look like "1,Nadymskaya 3,,,":
    the first cell starts with a digit and there is no internal number.
    Rows without a name in the first cell are treated the same way.
    """
    first = _cell(row, COL_FULL_NAME)
    if not first:
        return True

    if first[0].isdigit() and not _cell(row, COL_EXTENSION):
        return True
    return False


def parse_row(row: Sequence[str]) -> Optional[PhoneRecord]:
    """Map one positional row onto a PhoneRecord, or None if it is malformed."""
    if len(row) < MIN_COLUMNS:
        return None

    extension = _cell(row, COL_EXTENSION)
    if not is_valid_extension(extension):
        return None

    return PhoneRecord(
        full_name=_cell(row, COL_FULL_NAME),
        position=_cell(row, COL_POSITION),
        city_phone=_cell(row, COL_CITY_PHONE),
        extension=extension,
        pickup_group=_cell(row, COL_PICKUP_GROUP),
        ring_group=_cell(row, COL_RING_GROUP),
        is_t27=is_truthy_flag(_cell(row, COL_T27)),
        is_t23=is_truthy_flag(_cell(row, COL_T23)),
        is_radio=is_truthy_flag(_cell(row, COL_RADIO)),
        is_cisco_or_fax=is_truthy_flag(_cell(row, COL_CISCO_FAX)),
        is_active=is_truthy_flag(_cell(row, COL_ACTIVE)),
        mac_address=normalize_mac_address(_cell(row, COL_MAC)),
        is_mobile_client=is_truthy_flag(_cell(row, COL_MOBILE)),
        voip_vlan=_cell(row, COL_VOIP_VLAN),
        lan_vlan=_cell(row, COL_LAN_VLAN),
        location=_cell(row, COL_LOCATION),
        sip_server=_cell(row, COL_SIP_SERVER),
        subnet=_cell(row, COL_SUBNET),
        email=_cell(row, COL_EMAIL),
        conf_room=_cell(row, COL_CONF_ROOM),
        voice_menu=_cell(row, COL_VOICE_MENU),
        extra_ring_group=_cell(row, COL_EXTRA_RING_GROUP),
        special_pass=_cell(row, COL_SPECIAL_PASS),
        is_tls=is_truthy_flag(_cell(row, COL_TLS)),
        is_fanvil=is_truthy_flag(_cell(row, COL_FANVIL)),
    )


def parse_rows(rows: Iterable[Sequence[str]]) -> List[PhoneRecord]:
    """Skip the header row, service rows and malformed rows; keep source order."""
    records: List[PhoneRecord] = []
    for line_no, row in enumerate(rows, start=1):
        if line_no == 1:
            continue
        if is_service_row(row):
            logger.debug(f"Row {line_no}: service row skipped")
            continue
        record = parse_row(row)
        if record is None:
            logger.debug(f"Row {line_no}: malformed row skipped ({len(row)} cells, extension={_cell(row, COL_EXTENSION)!r})")
            continue
        records.append(record)
    return records


def load_csv(path: str, delimiter: str = ",", encoding: str = "utf-8-sig") -> List[PhoneRecord]:
    try:
        with open(path, "r", encoding=encoding, newline="") as f:
            records = parse_rows(csv.reader(f, delimiter=delimiter))
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise SourceError(f"cannot read {path}: {e}") from e

    logger.info(f"Loaded {len(records)} records from {path}")
    return records
