from typing import Dict, List, Optional
import logging

from dispatcher import register_emitter
from emitters.generic import Artifact, KeyValueTemplate
from utils.phone import is_addressable_mac
logger = logging.getLogger(__name__)


BOOT_CONFIG_SUFFIX = ".cfg"

RINGTONE_T23 = "Resource:Ring1.wav"
RINGTONE_T27 = "Resource:Ring7.wav"
RINGTONE_T27_ALERT = "Resource:Ring2.wav"


FANVIL_TEMPLATE = KeyValueTemplate([
    "#<Voip Config File>#",
    ("Version", "2.0000000000"),
    ("sip.line.1.PhoneNumber", "{extension}"),
    ("sip.line.1.DisplayName", "{full_name}"),
    ("sip.line.1.SipName", "{sip_server}"),
    ("sip.line.1.RegAddr", "{sip_server}"),
    ("sip.line.1.RegUser", "{extension}"),
    ("sip.line.1.RegPswd", "{password}"),
    ("sip.line.1.RegEnabled", "1"),
    ("sip.line.1.HotlineNum", "112"),
    ("sip.line.1.HotlineEnabled", "0"),
    ("sip.line.1.MWICode", "*97"),
    ("sip.line.1.AudioCodecSet", "PCMU,PCMA,G726-32,G729,G722"),
    "",
    # network
    ("net.dhcp.Enabled", "1"),
    ("net.dhcp.AutoDNS", "1"),
    ("net.pppoe.Enabled", "0"),
    "",
    # handset
    ("phone.MenuPassword", "123"),
    ("phone.KeyLockPassword", "123"),
    ("phone.KeyLockEnabled", "0"),
    ("phone.KeyLockTimeout", "0"),
    ("phone.KeyLockStatus", "0"),
    ("phone.date.SNTPEnabled", "1"),
    ("phone.date.SNTPServer", "{ntp_server}"),
    ("phone.date.SecondSNTPServer", "{second_ntp_server}"),
    ("phone.date.TimeZone", "20"),
    ("phone.date.TimeZoneName", "UTC+5"),
    ("phone.date.SNTPInterval", "1000"),
    "",
    # web ui
    ("web.account.1.Name", "admin"),
    ("web.account.1.Password", "Admin19"),
    ("web.account.1.Level", "10"),
    ("web.account.2.Name", "guest"),
    ("web.account.2.Password", "Guest19"),
    ("web.account.2.Level", "5"),
    "",
    # auto provisioning
    ("ap.DefaultUsername", ""),
    ("ap.DefaultPassword", ""),
    ("ap.DownloadCommonConf", "1"),
    ("ap.SaveProvisionInfo", "0"),
    ("ap.FailedRetryTimes", "5"),
    ("ap.FlashServerIP", "{provisioning_server}"),
    ("ap.FlashFileName", ""),
    ("ap.FlashProtocol", "2"),
    ("ap.FlashMode", "1"),
    ("ap.FlashInterval", "1"),
    ("ap.DHCPOption", "66"),
    ("ap.pnp.Enabled", "0"),
    ("ap.pnp.IP", "{provisioning_server}"),
    ("ap.pnp.Port", "5060"),
    ("ap.pnp.Transport", "0"),
    ("ap.pnp.Interval", "1"),
    "",
    ("qos.VLANEnabled", "1"),
    ("qos.VLANID", "{voip_vlan}"),
    ("qos.PortVLanEnabled", "1"),
    ("qos.PortVLanID", "{lan_vlan}"),
])

YEALINK_T23_TEMPLATE = KeyValueTemplate([
    "#!version:1.0.0.1",
    "#T23G",
    "#{full_name}",
    ("static.network.vlan.internet_port_enable", "1"),
    ("static.network.vlan.internet_port_vid", "{voip_vlan}"),
    ("static.network.vlan.pc_port_enable", "0"),
    ("static.network.vlan.pc_port_vid", "{lan_vlan}"),
    ("account.1.auth_name", "{extension}"),
    ("account.1.codec.opus.enable", "0"),
    ("account.1.codec.opus.priority", "5"),
    ("account.1.display_name", "{extension} {full_name}"),
    ("account.1.enable", "1"),
    ("account.1.label", "{extension}"),
    ("account.1.ringtone.ring_type", RINGTONE_T23),
    ("account.1.sip_server.1.address", "{sip_server}"),
    ("account.1.subscribe_register", "1"),
    ("account.1.unregister_on_reboot", "0"),
    ("account.1.user_name", "{extension}"),
    ("static.network.dhcp_host_name", "SIP-T23G-{extension}"),
    ("account.1.password", "{password}"),
])

YEALINK_T27_TEMPLATE = KeyValueTemplate([
    "#!version:1.0.0.1",
    "#T27G",
    ("static.network.vlan.internet_port_enable", "1"),
    ("static.network.vlan.internet_port_vid", "{voip_vlan}"),
    ("static.network.vlan.pc_port_enable", "0"),
    ("static.network.vlan.pc_port_vid", "{lan_vlan}"),
    ("account.1.auth_name", "{extension}"),
    ("account.1.codec.opus.enable", "0"),
    ("account.1.codec.opus.priority", "5"),
    ("account.1.display_name", "{extension} {full_name}"),
    ("account.1.enable", "1"),
    ("account.1.label", "{extension}"),
    ("account.1.ringtone.ring_type", RINGTONE_T27),
    ("account.1.sip_server.1.address", "{sip_server}"),
    ("account.1.subscribe_register", "1"),
    ("account.1.unregister_on_reboot", "0"),
    ("static.network.dhcp_host_name", "SIP-T27G-{extension}"),
    ("account.1.user_name", "{extension}"),
    ("account.1.password", "{password}"),
    ("distinctive_ring_tones.alert_info.1.ringer", RINGTONE_T27_ALERT),
    ("linekey.9.xml_phonebook", "0"),
])


def is_boot_config_eligible(r) -> bool:
    if not r.is_active:
        return False
    if not is_addressable_mac(r.mac_address):
        return False
    if not (r.voip_vlan and r.lan_vlan and r.sip_server):
        return False
    if not (r.is_t27 or r.is_t23 or r.is_fanvil):
        return False
    if r.is_cisco_or_fax or r.is_mobile_client:
        return False
    if r.is_extra_ring_group():
        return False
    return True


def template_for(r) -> Optional[KeyValueTemplate]:
    # Fanvil wins over the Yealink flags, T23 over T27.
    if r.is_fanvil:
        return FANVIL_TEMPLATE
    if r.is_t23:
        return YEALINK_T23_TEMPLATE
    if r.is_t27:
        return YEALINK_T27_TEMPLATE
    return None


def template_context(r, settings) -> Dict:
    ntp = list(settings.ntp_servers) + ["", ""]
    return {
        "extension": r.extension,
        "full_name": r.full_name,
        "sip_server": r.sip_server,
        "password": r.password(),
        "voip_vlan": r.voip_vlan,
        "lan_vlan": r.lan_vlan,
        "provisioning_server": settings.provisioning_server,
        "ntp_server": ntp[0],
        "second_ntp_server": ntp[1],
    }


def boot_config_filename(r) -> str:
    return f"{r.mac_address}{BOOT_CONFIG_SUFFIX}"


def render_boot_config(r, settings) -> str:
    return template_for(r).render(template_context(r, settings))


@register_emitter(10, "devices")
def emit_boot_configs(records, settings) -> List[Artifact]:
    artifacts: Dict[str, Artifact] = {}
    for r in records:
        if not is_boot_config_eligible(r):
            continue
        path = f"{settings.devices_dir}/{boot_config_filename(r)}"
        if path in artifacts:
            # MAC uniqueness is the directory's job; the later row wins.
            logger.warning(f"MAC {r.mac_address} used by more than one active record; keeping extension {r.extension}")
            del artifacts[path]
        artifacts[path] = Artifact(path, render_boot_config(r, settings))
    return list(artifacts.values())
