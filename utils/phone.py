import hashlib
import re


EXTENSION_RE = re.compile(r'^[0-9]{4}$')
MIN_MAC_LENGTH = 12
# Hex pairs, optionally split by ":", "-" or "." (aa:bb:.., aa-bb-.., aabb.ccdd.eeff)
MAC_RE = re.compile(r'[0-9a-f]{2}(?:[:.\-]?[0-9a-f]{2})*', re.IGNORECASE)


def clean_digits(value: str) -> str:
    """Strip everything but ASCII digits ("24-48-42" -> "244842")."""
    return re.sub(r'[^0-9]', '', value or '')


def normalize_mac_address(mac: str) -> str:
    """Lower-case and trim a MAC address; separators are kept as entered."""
    return (mac or '').strip().lower()


def is_addressable_mac(mac: str) -> bool:
    return bool(mac) and len(mac) >= MIN_MAC_LENGTH and bool(MAC_RE.fullmatch(mac))


def is_valid_extension(extension: str) -> bool:
    return bool(EXTENSION_RE.match(extension or ''))


def md5_hex(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def is_truthy_flag(value) -> bool:
    # Spreadsheet exports mark flags with "1"; everything else is off.
    return str(value).strip() == "1"
