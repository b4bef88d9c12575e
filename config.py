import json
import logging
import os
import yaml
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Optional, Tuple
logger = logging.getLogger(__name__)


DB_PATH_ENV = "PYPROVISION_DB"
DEFAULT_DB_PATH = "asterisk_manager.sqlite"


DEFAULT_SETTINGS = {
    # Sites routed through the administrative gateway; one table for the
    # outbound rules, the inbound trunk files and nothing else.
    "admin_sites": ["Mir", "Sov", "Ubil1", "Leb5b-arh", "Nad3", "Limb", "Kor", "Ind4", "Len15v"],
    "primary_site": "Zags",
    "default_gateway": "trunk_2",
    "admin_gateway": "trunk_3",
    # Legacy routes not represented in the directory: [city number, ring group]
    "static_routes": [["947947", "6246"], ["947994", "6293"], ["947798", "6097"]],
    "ring_timeout": 40,
    "billing_prefix": "3494",
    "fax_dir": "/var/calls/FAX",
    "fax_fallback_email": "fax@nur.yanao.ru",
    "fax_sender_domain": "nur.yanao.ru",
    "voicemail_secret": "1234",
    "provisioning_server": "10.16.0.102",
    "ntp_servers": ["10.16.0.100", "10.16.0.69"],
    "dial_peer": {
        "corlist": "pbx94",
        "codec_class": 1,
        "sip_port": 5060,
    },
    "devices_dir": "tftpboot",
    "users_dir": "UsersConf",
    "routing_dir": "ExtConf",
    "gateway_file": "CiscoConf.txt",
}


def load_config(config_path: str) -> dict:
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    ext = path.suffix.lower()
    if ext not in [".json", ".yaml", ".yml"]:
        raise ValueError(f"Unsupported config file format: {ext}")

    try:
        with path.open("r", encoding="utf-8") as f:
            if ext == ".json":
                return json.load(f) or {}
            return yaml.safe_load(f) or {}
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise RuntimeError(f"Failed to load config: {e}") from e


@dataclass(frozen=True)
class DialPeerSettings:
    corlist: str = "pbx94"
    codec_class: int = 1
    sip_port: int = 5060


@dataclass(frozen=True)
class GeneratorSettings:
    admin_sites: Tuple[str, ...] = ()
    primary_site: str = ""
    default_gateway: str = ""
    admin_gateway: str = ""
    static_routes: Tuple[Tuple[str, str], ...] = ()
    ring_timeout: int = 40
    billing_prefix: str = ""
    fax_dir: str = ""
    fax_fallback_email: str = ""
    fax_sender_domain: str = ""
    voicemail_secret: str = ""
    provisioning_server: str = ""
    ntp_servers: Tuple[str, ...] = ()
    dial_peer: DialPeerSettings = field(default_factory=DialPeerSettings)
    devices_dir: str = "tftpboot"
    users_dir: str = "UsersConf"
    routing_dir: str = "ExtConf"
    gateway_file: str = "CiscoConf.txt"

    def is_admin_site(self, location: str) -> bool:
        return location in self.admin_sites

    def gateway_for(self, location: str) -> str:
        return self.admin_gateway if self.is_admin_site(location) else self.default_gateway


def settings_from_dict(data: Optional[Dict]) -> GeneratorSettings:
    merged = dict(DEFAULT_SETTINGS)
    known = {f.name for f in fields(GeneratorSettings)}
    for key, value in (data or {}).items():
        if key not in known:
            logger.warning(f"Ignoring unknown setting: {key}")
            continue
        merged[key] = value

    dial_peer = dict(DEFAULT_SETTINGS["dial_peer"])
    dial_peer.update(merged.get("dial_peer") or {})

    return GeneratorSettings(
        admin_sites=tuple(str(s) for s in merged["admin_sites"]),
        primary_site=str(merged["primary_site"]),
        default_gateway=str(merged["default_gateway"]),
        admin_gateway=str(merged["admin_gateway"]),
        static_routes=_static_routes(merged["static_routes"]),
        ring_timeout=int(merged["ring_timeout"]),
        billing_prefix=str(merged["billing_prefix"]),
        fax_dir=str(merged["fax_dir"]),
        fax_fallback_email=str(merged["fax_fallback_email"]),
        fax_sender_domain=str(merged["fax_sender_domain"]),
        voicemail_secret=str(merged["voicemail_secret"]),
        provisioning_server=str(merged["provisioning_server"]),
        ntp_servers=tuple(str(s) for s in merged["ntp_servers"]),
        dial_peer=DialPeerSettings(
            corlist=str(dial_peer["corlist"]),
            codec_class=int(dial_peer["codec_class"]),
            sip_port=int(dial_peer["sip_port"]),
        ),
        devices_dir=str(merged["devices_dir"]),
        users_dir=str(merged["users_dir"]),
        routing_dir=str(merged["routing_dir"]),
        gateway_file=str(merged["gateway_file"]),
    )


def _static_routes(entries: List) -> Tuple[Tuple[str, str], ...]:
    routes = []
    for entry in entries or []:
        if isinstance(entry, dict):
            city, group = entry.get("city_number"), entry.get("ring_group")
        else:
            city, group = entry
        routes.append((str(city), str(group)))
    return tuple(routes)


def load_settings(config_path: Optional[str] = None) -> GeneratorSettings:
    if not config_path:
        return settings_from_dict(None)
    data = load_config(config_path)
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")
    logger.debug(f"Loaded settings from {config_path}")
    return settings_from_dict(data)


def default_database_path() -> str:
    return os.environ.get(DB_PATH_ENV) or DEFAULT_DB_PATH
