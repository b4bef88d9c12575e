from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional, Tuple
import re
import logging

from dispatcher import register_emitter
from emitters.generic import Artifact, first_seen, render_lines
from emitters.routing import routable_city_number
logger = logging.getLogger(__name__)


# ========= Data model =========
@dataclass
class DialPeer:
    id: str                                  # the city number, leading zeros kept
    kind: str                                # "voip" or "pots"
    description: Optional[str] = None
    corlist_incoming: Optional[str] = None
    huntstop: bool = False
    destination_pattern: Optional[str] = None
    voice_class_codec: Optional[int] = None
    session_protocol: Optional[str] = None   # "sipv2"
    session_target: Optional[str] = None     # "ipv4:10.16.0.102:5060"
    session_transport: Optional[str] = None  # "udp"
    dtmf_relay: Optional[str] = None         # "rtp-nte"
    fax_rate: Optional[str] = None           # "disable"
    fax_protocol: Optional[str] = None       # "pass-through g711ulaw"
    no_vad: bool = False
    raw_config: Optional[str] = field(default=None, compare=False)

    def render(self) -> List[str]:
        lines = [f"dial-peer voice {self.id} {self.kind}"]
        if self.corlist_incoming:
            lines.append(f"corlist incoming {self.corlist_incoming}")
        if self.description:
            lines.append(f"Description {self.description}")
        if self.huntstop:
            lines.append("huntstop")
        if self.destination_pattern:
            lines.append(f"destination-pattern {self.destination_pattern}")
        if self.voice_class_codec is not None:
            lines.append(f"voice-class codec {self.voice_class_codec}")
        if self.session_protocol:
            lines.append(f"session protocol {self.session_protocol}")
        if self.session_target:
            lines.append(f"session target {self.session_target}")
        if self.session_transport:
            lines.append(f"session transport {self.session_transport}")
        if self.dtmf_relay:
            lines.append(f"dtmf-relay {self.dtmf_relay}")
        if self.fax_rate:
            lines.append(f"fax rate {self.fax_rate}")
        if self.fax_protocol:
            lines.append(f"fax protocol {self.fax_protocol}")
        if self.no_vad:
            lines.append("no vad")
        return lines


# ========= Generation =========
def dial_peer_for(r, city_number: str, settings) -> DialPeer:
    return DialPeer(
        id=city_number,
        kind="voip",
        corlist_incoming=settings.dial_peer.corlist,
        description=f"{city_number} - {r.location}",
        huntstop=True,
        destination_pattern=city_number,
        voice_class_codec=settings.dial_peer.codec_class,
        session_protocol="sipv2",
        session_target=f"ipv4:{r.sip_server}:{settings.dial_peer.sip_port}",
        session_transport="udp",
        dtmf_relay="rtp-nte",
        fax_rate="disable",
        fax_protocol="pass-through g711ulaw",
        no_vad=True,
    )


def build_dial_peers(records, settings) -> List[DialPeer]:
    # Local-only records still get a peer; only the primary site is served elsewhere.
    served = [r for r in records if r.is_active and r.location != settings.primary_site]
    by_city = first_seen(served, routable_city_number)
    return [dial_peer_for(r, city, settings) for city, r in by_city.items()]


def render_dial_peers(peers: List[DialPeer]) -> str:
    lines: List[str] = []
    for dp in peers:
        lines.append("")
        lines.extend(dp.render())
    return render_lines(lines)


@register_emitter(40, "gateway")
def emit_gateway_config(records, settings) -> List[Artifact]:
    peers = build_dial_peers(records, settings)
    return [Artifact(settings.gateway_file, render_dial_peers(peers))]


def peer_order(peer_id: str):
    """Numeric order, with the text as tie-break for ids that differ only in leading zeros."""
    return int(peer_id), peer_id


# ========= Parsing 'show run | sec dial-peer' =========
DP_HEADER_RE = re.compile(r'^\s*dial-peer\s+voice\s+(\d+)\s+(voip|pots)\s*$', re.IGNORECASE)
DP_DESC_RE = re.compile(r'^\s*description\s+(?:"([^"]+)"|(.+))\s*$', re.IGNORECASE)
DP_CORLIST_IN_RE = re.compile(r'^\s*corlist\s+incoming\s+(\S+)\s*$', re.IGNORECASE)
DP_HUNTSTOP_RE = re.compile(r'^\s*huntstop\s*$', re.IGNORECASE)
DP_DEST_RE = re.compile(r'^\s*destination-pattern\s+(\S+)\s*$', re.IGNORECASE)
DP_CODEC_CLASS_RE = re.compile(r'^\s*voice-class\s+codec\s+(\d+)\s*$', re.IGNORECASE)
DP_SESS_PROTO_RE = re.compile(r'^\s*session\s+protocol\s+(\S+)\s*$', re.IGNORECASE)
DP_SESS_TARGET_RE = re.compile(r'^\s*session\s+target\s+(\S+)\s*$', re.IGNORECASE)
DP_SESS_TRANSPORT_RE = re.compile(r'^\s*session\s+transport\s+(\S+)\s*$', re.IGNORECASE)
DP_DTMF_RE = re.compile(r'^\s*dtmf-relay\s+(\S+)\s*$', re.IGNORECASE)
DP_FAX_RATE_RE = re.compile(r'^\s*fax\s+rate\s+(\S+)\s*$', re.IGNORECASE)
DP_FAX_PROTO_RE = re.compile(r'^\s*fax\s+protocol\s+(.+?)\s*$', re.IGNORECASE)
DP_NO_VAD_RE = re.compile(r'^\s*no\s+vad\s*$', re.IGNORECASE)


def _cap2(m):
    """Return the first non-None capture group from a regex match (quoted or unquoted)."""
    if not m:
        return None
    g1, g2 = (m.group(1), m.group(2))
    return (g1 if g1 is not None else g2).strip()


def parse_dial_peers(text: str) -> List[DialPeer]:
    """
    Parse 'show run | sec dial-peer' (or a generated dial-peer file) into
    DialPeer objects with raw_config per peer, sorted by id.
    """
    peers: Dict[str, DialPeer] = {}
    lines = [l.rstrip() for l in text.splitlines()]
    current_id = None
    current_block: List[str] = []

    def flush():
        nonlocal current_id, current_block
        if current_id is not None and current_id in peers:
            peers[current_id].raw_config = "\n".join(current_block).strip()
        current_id = None
        current_block = []

    for line in lines:
        if not line.strip() or line.strip() == "!":
            continue

        m = DP_HEADER_RE.match(line)
        if m:
            flush()
            pid = m.group(1)
            peers[pid] = DialPeer(id=pid, kind=m.group(2).lower())
            current_id = pid
            current_block = [line]
            continue

        if current_id is None:
            continue

        current_block.append(line)
        dp = peers[current_id]
        if (mm := DP_DESC_RE.match(line)):
            dp.description = _cap2(mm)
        elif (mm := DP_CORLIST_IN_RE.match(line)):
            dp.corlist_incoming = mm.group(1)
        elif DP_HUNTSTOP_RE.match(line):
            dp.huntstop = True
        elif (mm := DP_DEST_RE.match(line)):
            dp.destination_pattern = mm.group(1)
        elif (mm := DP_CODEC_CLASS_RE.match(line)):
            dp.voice_class_codec = int(mm.group(1))
        elif (mm := DP_SESS_PROTO_RE.match(line)):
            dp.session_protocol = mm.group(1)
        elif (mm := DP_SESS_TARGET_RE.match(line)):
            dp.session_target = mm.group(1)
        elif (mm := DP_SESS_TRANSPORT_RE.match(line)):
            dp.session_transport = mm.group(1)
        elif (mm := DP_DTMF_RE.match(line)):
            dp.dtmf_relay = mm.group(1)
        elif (mm := DP_FAX_RATE_RE.match(line)):
            dp.fax_rate = mm.group(1)
        elif (mm := DP_FAX_PROTO_RE.match(line)):
            dp.fax_protocol = mm.group(1)
        elif DP_NO_VAD_RE.match(line):
            dp.no_vad = True

    flush()
    return [peers[k] for k in sorted(peers.keys(), key=peer_order)]


# ========= Diff =========
COMPARED_FIELDS = [f.name for f in fields(DialPeer) if f.name not in ("id", "raw_config")]


@dataclass
class DialPeerDiff:
    missing: List[str] = field(default_factory=list)       # generated, not on the gateway
    unexpected: List[str] = field(default_factory=list)    # on the gateway, not generated
    changed: List[Tuple[str, str, object, object]] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.missing or self.unexpected or self.changed)

    def lines(self) -> List[str]:
        out = [f"+ dial-peer voice {pid}" for pid in self.missing]
        out += [f"- dial-peer voice {pid}" for pid in self.unexpected]
        out += [f"~ dial-peer voice {pid}: {name} {actual!r} -> {expected!r}"
                for pid, name, expected, actual in self.changed]
        return out


def diff_dial_peers(expected: List[DialPeer], actual: List[DialPeer]) -> DialPeerDiff:
    want = {dp.id: dp for dp in expected}
    have = {dp.id: dp for dp in actual}
    diff = DialPeerDiff(
        missing=sorted(set(want) - set(have), key=peer_order),
        unexpected=sorted(set(have) - set(want), key=peer_order),
    )
    for pid in sorted(set(want) & set(have), key=peer_order):
        for name in COMPARED_FIELDS:
            w, h = getattr(want[pid], name), getattr(have[pid], name)
            if w != h:
                diff.changed.append((pid, name, w, h))
    return diff
