"""
Dial-plan artifacts for the switch.

Four independent passes over the active records:
  (a) caller-ID table                       ExtensionsCID.conf
  (b) ring groups, their scripts, menus     ExtensionsRG/RGCFG/VMCFG.conf
  (c) outbound rules and user contexts      ExtensionsOut.conf, ExtensionsDP.conf
  (d) inbound trunk tables                  ExtensionsTrunk<site>.conf, ExtensionsTrankAdm.conf

Every grouping keeps input order: the first record seen for a ring group or
a city number is the one whose data ends up in the output.
"""
from typing import List
import logging

from dispatcher import register_emitter
from emitters.generic import (Artifact, SHARED_INCLUDES, GENERIC_OUTBOUND_RULES, render_lines,
                              exten, include, first_seen, group_in_order)
from emitters.users import LOCAL_ONLY_CONTEXT, dialplan_context
logger = logging.getLogger(__name__)


CID_FILE = "ExtensionsCID.conf"
RING_GROUPS_FILE = "ExtensionsRG.conf"
RING_GROUP_SCRIPTS_FILE = "ExtensionsRGCFG.conf"
VOICE_MENUS_FILE = "ExtensionsVMCFG.conf"
OUTBOUND_FILE = "ExtensionsOut.conf"
DIALPLANS_FILE = "ExtensionsDP.conf"
ADMIN_TRUNK_FILE = "ExtensionsTrankAdm.conf"

CITY_NUMBER_LENGTH = 6

RECORDING = "Macro(recording,${CALLERID(num)},${EXTEN})"
CALLER = "${CALLERID(num)}"
FAX_MESSAGE = ("Вам пришел факс с номера ${CALLERID(num)} в ${STRFTIME(${EPOCH},,%H:%M:%S)}. "
               "Факс во вложении.")


def primary_trunk_file(settings) -> str:
    return f"ExtensionsTrunk{settings.primary_site}.conf"


def routable_records(records) -> list:
    """Active records that take part in external routing."""
    return [r for r in records if r.is_active and not r.is_local_only()]


def routable_city_number(r) -> str:
    city = r.clean_city_number()
    return city if len(city) == CITY_NUMBER_LENGTH else ""


def ring_group_label(city_number: str, ring_group: str) -> str:
    return f"ringroups-{city_number}-{ring_group}"


def voice_menu_label(city_number: str, ring_group: str) -> str:
    return f"voicemenu-{city_number}-{ring_group}"


def _path(settings, name: str) -> str:
    return f"{settings.routing_dir}/{name}"


# ========= (a) caller-ID table =========
def build_caller_id_table(records) -> str:
    active = [r for r in records if r.is_active]
    return render_lines(f"CID_{ext} = {ext}" for ext in first_seen(active, lambda r: r.extension))


# ========= (b) ring groups =========
def ring_group_dispatch(ring_group: str, city_number: str) -> str:
    return exten(ring_group, 1, f"Goto({ring_group_label(city_number, ring_group)},s,1)")


def ring_group_script(ring_group: str, members, settings) -> List[str]:
    first = members[0]
    city = first.clean_city_number()
    dial_targets = "&".join(f"SIP/{m.extension}" for m in members)
    return [
        f"[{ring_group_label(city, ring_group)}]",
        exten("s", 1, f"NoOp(RG{city})"),
        exten("s", "n", f"Dial({dial_targets},{settings.ring_timeout},${{DIALOPTIONS}})"),
        exten("s", "n", f"Voicemail({first.extension},u)"),
        "",
    ]


def voice_menu_script(ring_group: str, members, settings) -> List[str]:
    first = members[0]
    city = first.clean_city_number()
    lines = [
        f"[{voice_menu_label(city, ring_group)}]",
        exten("s", 1, f"NoOp(VM{city})"),
        exten("s", "n", "Set(numTries=0)"),
        exten("s", "n", "Answer()"),
    ]
    if first.has_voice_menu():
        lines.append(exten("s", "n(naberite)", f"Background(record/{first.voice_menu})"))
        lines.append(exten("s", "n", "WaitExten(5)"))
    lines.append(exten("s", "n", "Background(record/WRITECALL)"))
    lines.append(exten("s", "n", f"Goto({ring_group_label(city, ring_group)},s,1)"))

    for m in members:
        lines.append(exten(f"_{m.extension}", 1, "Background(record/WRITECALL)"))
        lines.append(exten(f"_{m.extension}", 2, "Dial(SIP/${EXTEN})"))

    lines.append(exten("_XXXX", 1, "Goto(s,naberite)"))
    lines.append(exten("0", 1, "Goto(s,naberite)"))
    lines.extend(fax_branch(city, first.email or settings.fax_fallback_email, settings))
    lines.append(exten("2", 1, "Background(record/VoiceMesAns)"))
    lines.append(exten("2", 2, f"Voicemail({first.extension},s)"))
    lines.append("")
    return lines


def fax_branch(city_number: str, email: str, settings) -> List[str]:
    stamp = f"${{STRFTIME(${{EPOCH}},,{city_number}-%Y%m%d-%H_%M_%S)}}-from-{CALLER}"
    return [
        exten("1", 1, f"Set(FAXFILE={settings.fax_dir}/{stamp}.tif)"),
        exten("1", 2, f"Set(PDFFILE={settings.fax_dir}/{stamp}.pdf)"),
        exten("1", 3, "ReceiveFax(${FAXFILE})"),
        exten("1", 4, "System(/usr/bin/tiff2pdf ${FAXFILE} > ${PDFFILE})"),
        exten("1", 5, "System(/bin/rm -f ${FAXFILE})"),
        exten("1", 6, (f"System(/root/bin/sendEmail.pl -f fax{city_number}@{settings.fax_sender_domain} -t {email}"
                       f" -u \"Incoming FAX {CALLER}\" -m \"{FAX_MESSAGE}\" -a ${{PDFFILE}} -o message-charset=UTF-8)")),
        exten("1", 7, "Hangup()"),
    ]


def build_ring_groups(records, settings):
    """Return (dispatch table, target scripts, voice menus) file contents."""
    groups = group_in_order(routable_records(records), lambda r: r.ring_group)

    dispatch = ["[ringgroups]"]
    scripts = [";Ring group settings"]
    menus = [";Voice menus"]

    for ring_group, members in groups.items():
        if not members:
            continue
        dispatch.append(ring_group_dispatch(ring_group, members[0].clean_city_number()))
        scripts.extend(ring_group_script(ring_group, members, settings))
        menus.extend(voice_menu_script(ring_group, members, settings))

    dispatch.append("")
    dispatch.append("; Static entries")
    for city, ring_group in settings.static_routes:
        dispatch.append(ring_group_dispatch(ring_group, city))

    logger.debug(f"{len(groups)} ring group(s), {len(settings.static_routes)} static route(s)")
    return render_lines(dispatch), render_lines(scripts), render_lines(menus)


# ========= (c) outbound rules and user contexts =========
def _trunk_dial(gateway: str, number: str, city_number: str, settings) -> str:
    return f"Macro(trunkdial-failover-0.3,${{{gateway}}}/{number},,{gateway},,{settings.billing_prefix}{city_number})"


def priority_rules_name(city_number: str) -> str:
    return f"CallingRule_RT{city_number}out-spec"


def standard_rules_name(city_number: str) -> str:
    return f"CallingRule_RT{city_number}out"


def outbound_rules(r, city: str, settings) -> List[str]:
    gateway = settings.gateway_for(r.location)
    lines = [
        f"[{priority_rules_name(city)}]",
        exten("_X.", 1, RECORDING),
        exten("_0X", 2, _trunk_dial(gateway, "${EXTEN:0}", city, settings)),
        exten("_1XX", 3, _trunk_dial(gateway, "${EXTEN:0}", city, settings)),
        "",
        f"[{standard_rules_name(city)}]",
        exten("_X.", 1, RECORDING),
        exten("_[29]XXXXX", 2, _trunk_dial(gateway, "${EXTEN:0}", city, settings)),
        exten("_[78]XXXXX.", 3, _trunk_dial(gateway, "8${EXTEN:1}", city, settings)),
        exten("_NXXXXXXXXX", 4, _trunk_dial(gateway, "8${EXTEN:0}", city, settings)),
    ]
    if r.conf_room:
        lines.append(exten(r.conf_room, 1, "Answer()"))
        lines.append(exten(r.conf_room, "n", "ConfBridge(1,confer)"))
    lines.append("")
    return lines


def local_only_context() -> List[str]:
    return ([f"[{LOCAL_ONLY_CONTEXT}]", include(GENERIC_OUTBOUND_RULES)]
            + [include(c) for c in SHARED_INCLUDES] + [""])


def user_context(r, city: str) -> List[str]:
    return ([f"[{dialplan_context(r.location, city)}]",
             include(priority_rules_name(city)),
             include(GENERIC_OUTBOUND_RULES),
             include(standard_rules_name(city))]
            + [include(c) for c in SHARED_INCLUDES] + [""])


def build_dialplans(records, settings):
    """Return (outbound rules, dial-plan contexts) file contents."""
    outbound = [";Outbound rules"]
    dialplans = [";Dial plans"]
    dialplans.extend(local_only_context())

    by_city = first_seen(routable_records(records), routable_city_number)
    for city, r in by_city.items():
        outbound.extend(outbound_rules(r, city, settings))
        dialplans.extend(user_context(r, city))

    logger.debug(f"{len(by_city)} outbound city number(s)")
    return render_lines(outbound), render_lines(dialplans)


# ========= (d) inbound trunk tables =========
def trunk_header(title: str, gateway: str) -> List[str]:
    return [
        f";{title}",
        f"[DID_{gateway}]",
        include(f"DID_{gateway}_default"),
        f"[DID_{gateway}_default]",
    ]


def inbound_entry(city: str, ring_group: str) -> List[str]:
    return [
        exten(f"_{city}", 1, RECORDING),
        exten(f"_{city}", 2, f"Goto({voice_menu_label(city, ring_group)},s,1)"),
    ]


def build_trunks(records, settings):
    """Return (primary-site trunk, administrative trunk) file contents."""
    primary = trunk_header(f"Inbound - {settings.primary_site} gateway", settings.default_gateway)
    admin = trunk_header("Inbound - administration gateway", settings.admin_gateway)

    # Deduplicated on its own, independently of the outbound pass
    by_city = first_seen(routable_records(records), routable_city_number)
    for city, r in by_city.items():
        if r.location == settings.primary_site:
            primary.extend(inbound_entry(city, r.ring_group))
        elif settings.is_admin_site(r.location):
            admin.extend(inbound_entry(city, r.ring_group))

    admin.append("")
    admin.append("; Static entries")
    for city, ring_group in settings.static_routes:
        admin.extend(inbound_entry(city, ring_group))

    return render_lines(primary), render_lines(admin)


@register_emitter(30, "routing")
def emit_routing(records, settings) -> List[Artifact]:
    ring_groups, scripts, menus = build_ring_groups(records, settings)
    outbound, dialplans = build_dialplans(records, settings)
    primary_trunk, admin_trunk = build_trunks(records, settings)
    return [
        Artifact(_path(settings, CID_FILE), build_caller_id_table(records)),
        Artifact(_path(settings, RING_GROUPS_FILE), ring_groups),
        Artifact(_path(settings, RING_GROUP_SCRIPTS_FILE), scripts),
        Artifact(_path(settings, VOICE_MENUS_FILE), menus),
        Artifact(_path(settings, OUTBOUND_FILE), outbound),
        Artifact(_path(settings, DIALPLANS_FILE), dialplans),
        Artifact(_path(settings, primary_trunk_file(settings)), primary_trunk),
        Artifact(_path(settings, ADMIN_TRUNK_FILE), admin_trunk),
    ]
