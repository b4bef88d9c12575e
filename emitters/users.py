from typing import Dict, List
import logging

from dispatcher import register_emitter
from emitters.generic import Artifact, KeyValueTemplate
logger = logging.getLogger(__name__)


LOCAL_ONLY_CONTEXT = "DLPN_DialPlan_OnlyLocal"
USER_FILE_PREFIX = "User"
USER_FILE_SUFFIX = ".conf"


def dialplan_context(location: str, city_number: str) -> str:
    return f"DLPN_DialPlan_{location}_{city_number}"


def context_for(r) -> str:
    if r.is_local_only():
        return LOCAL_ONLY_CONTEXT
    return dialplan_context(r.location, r.clean_city_number())


def _group_line(name):
    # Commented placeholder keeps the file shape stable for diffs
    def lines(ctx):
        if ctx["pickup_group"]:
            return [f"{name} = {ctx['pickup_group']}", ""]
        return [f";{name} = ", ""]
    return lines


PEER_TEMPLATE = KeyValueTemplate([
    "[{extension}]",
    ("fullname", "{full_name}"),
    ("registersip", "no"),
    ("host", "Dynamic"),
    _group_line("callgroup"),
    ("mailbox", "{extension}"),
    ("call-limit", "100"),
    ("type", "peer"),
    ("UserName", "{extension}"),
    ("transfer", "yes"),
    "",
    ("callcounter", "yes"),
    ("Context", "{context}"),
    ("cid_number", "{extension}"),
    ("hasvoicemail", "yes"),
    ("vmsecret", "{voicemail_secret}"),
    ("email", "{email}"),
    ("threewaycalling", "no"),
    ("hasdirectory", "no"),
    ("callwaiting", "no"),
    ("hasmanager", "no"),
    ("hasagent", "no"),
    ("hassip", "yes"),
    ("hasiax", "no"),
    ("secret", "{password}"),
    "nat=force_rport,comedia",
    ("canreinvite", "no"),
    ("dtmfmode", "rfc2833"),
    ("insecure", "no"),
    _group_line("pickupgroup"),
    ("macaddress", "{extension}"),
    ("autoprov", "yes"),
    ("Label", "{extension}"),
    ("linenumber", "1"),
    ("LINEKEYS", "1"),
    ("disallow", "all"),
    ("allow", "alaw,ulaw"),
    ("deny", "0.0.0.0/0"),
    ("permit", "{subnet}"),
    ("directmedia", "no"),
])


def is_peer_eligible(r) -> bool:
    return (r.is_active
            and bool(r.location)
            and bool(r.subnet)
            and r.has_device_type()
            and not r.is_extra_ring_group())


def peer_filename(r) -> str:
    return f"{USER_FILE_PREFIX}{r.extension}{USER_FILE_SUFFIX}"


def render_peer(r, settings) -> str:
    return PEER_TEMPLATE.render({
        "extension": r.extension,
        "full_name": r.full_name,
        "pickup_group": r.pickup_group,
        "context": context_for(r),
        "voicemail_secret": settings.voicemail_secret,
        "email": r.email,
        "password": r.password(),
        "subnet": r.subnet,
    })


@register_emitter(20, "users")
def emit_peer_configs(records, settings) -> List[Artifact]:
    artifacts: Dict[str, Artifact] = {}
    for r in records:
        if not is_peer_eligible(r):
            continue
        path = f"{settings.users_dir}/{peer_filename(r)}"
        if path in artifacts:
            logger.warning(f"Extension {r.extension} defined more than once; later record overwrites {path}")
            del artifacts[path]
        artifacts[path] = Artifact(path, render_peer(r, settings))
    return list(artifacts.values())
