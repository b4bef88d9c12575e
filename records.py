from dataclasses import dataclass, asdict
from utils.phone import clean_digits, md5_hex, is_truthy_flag


LOCAL_ONLY_RING_GROUP = "local"
NO_VOICE_MENU = "NO"

# Model names as stored in the device table
DEVICE_MODEL_T27G = "Yealink T27G"
DEVICE_MODEL_T23G = "Yealink T23G"
DEVICE_MODEL_FANVIL = "Fanvil"
DEVICE_MODEL_CISCO = "Cisco"

DEVICE_MODEL_FLAGS = {
    DEVICE_MODEL_T27G: "is_t27",
    DEVICE_MODEL_T23G: "is_t23",
    DEVICE_MODEL_FANVIL: "is_fanvil",
    DEVICE_MODEL_CISCO: "is_cisco_or_fax",
}


@dataclass(frozen=True)
class PhoneRecord:
    """
    One provisioned extension, normalized regardless of where it came from.

    Records are built once per run by a loader and never mutated; every
    emitter reads the same ordered list.
    """
    extension: str
    full_name: str = ""
    position: str = ""
    city_phone: str = ""                # raw, may contain hyphens: "24-48-42"
    pickup_group: str = ""
    ring_group: str = ""                # "local" = intra-switch only
    is_t27: bool = False
    is_t23: bool = False
    is_radio: bool = False
    is_cisco_or_fax: bool = False
    is_active: bool = False
    mac_address: str = ""               # lower-case
    is_mobile_client: bool = False
    voip_vlan: str = ""
    lan_vlan: str = ""
    location: str = ""
    sip_server: str = ""
    subnet: str = ""
    email: str = ""
    conf_room: str = ""
    voice_menu: str = ""
    extra_ring_group: str = ""
    special_pass: str = ""
    is_tls: bool = False
    is_fanvil: bool = False

    def clean_city_number(self) -> str:
        return clean_digits(self.city_phone)

    def password(self) -> str:
        if self.special_pass:
            return self.special_pass
        return md5_hex(self.extension + self.extension)

    def is_local_only(self) -> bool:
        return self.ring_group == LOCAL_ONLY_RING_GROUP

    def is_extra_ring_group(self) -> bool:
        return is_truthy_flag(self.extra_ring_group)

    def has_device_type(self) -> bool:
        return (self.is_t27 or self.is_t23 or self.is_radio or self.is_cisco_or_fax
                or self.is_mobile_client or self.is_fanvil)

    def has_voice_menu(self) -> bool:
        return self.voice_menu not in ("", NO_VOICE_MENU)

    def to_dict(self) -> dict:
        return asdict(self)
