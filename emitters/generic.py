from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Sequence, Tuple, Union
import logging
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Artifact:
    path: str       # relative to the output root, "/"-separated
    content: str


# Routing scopes every user context pulls in besides its own outbound rules
SHARED_INCLUDES = [
    "default",
    "parkedcalls",
    "conferences",
    "ringgroups",
    "voicemenus",
    "queues",
    "voicemailgroups",
    "directory",
    "pagegroups",
    "page_an_extension",
]
GENERIC_OUTBOUND_RULES = "CallingRule_DIOout"


TemplateEntry = Union[str, Tuple[str, str], Callable[[Dict], Iterable[str]]]


class KeyValueTemplate:
    """
    Line-oriented config template.

    Entries are rendered in order:
      - ("key", "value {field}")  -> "key = value ..." (str.format over the context)
      - "raw {field} line"        -> the line itself, formatted; "" for a blank line
      - callable(context)         -> any number of lines, for conditional blocks
    """

    def __init__(self, entries: Sequence[TemplateEntry], separator: str = " = "):
        self.entries = list(entries)
        self.separator = separator

    def render(self, context: Dict) -> str:
        lines: List[str] = []
        for entry in self.entries:
            if callable(entry):
                lines.extend(entry(context))
            elif isinstance(entry, tuple):
                key, value = entry
                lines.append(f"{key}{self.separator}{value.format(**context)}")
            else:
                lines.append(entry.format(**context))
        return render_lines(lines)


def render_lines(lines: Iterable[str]) -> str:
    return "".join(f"{line}\n" for line in lines)


def exten(pattern: str, priority, app: str) -> str:
    return f"exten => {pattern},{priority},{app}"


def include(context: str) -> str:
    return f"include => {context}"


def first_seen(records, key: Callable) -> Dict:
    """
    Map key -> first record carrying it, in input order.
    Records whose key is falsy are ignored. Plain dicts keep insertion
    order, so later duplicates never move or replace an earlier entry.
    """
    seen: Dict = {}
    for r in records:
        k = key(r)
        if not k or k in seen:
            continue
        seen[k] = r
    return seen


def group_in_order(records, key: Callable) -> Dict[str, List]:
    """Bucket records by key; groups and their members both keep input order."""
    groups: Dict[str, List] = {}
    for r in records:
        k = key(r)
        if not k:
            continue
        groups.setdefault(k, []).append(r)
    return groups
