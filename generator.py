import logging
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Tuple

import emitters  # noqa: F401  (registers the emitters)
from config import GeneratorSettings, load_settings
from dispatcher import dispatch_emitters
from emitters.generic import Artifact
from loaders import load_csv, load_database, load_from_connection
from records import PhoneRecord
from utils.output import write_artifacts
import utils.logs  # noqa: F401  (installs logger.message)


@dataclass
class GenerationStats:
    total: int = 0
    active: int = 0
    t27: int = 0
    t23: int = 0
    fanvil: int = 0
    cisco: int = 0
    with_mac: int = 0
    local: int = 0

    @classmethod
    def from_records(cls, records: List[PhoneRecord]) -> "GenerationStats":
        stats = cls(total=len(records))
        for r in records:
            stats.active += r.is_active
            stats.t27 += r.is_t27
            stats.t23 += r.is_t23
            stats.fanvil += r.is_fanvil
            stats.cisco += r.is_cisco_or_fax
            stats.with_mac += bool(r.mac_address)
            stats.local += r.is_local_only()
        return stats

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


class ConfigGenerator:
    """
    Loads the directory once and turns it into the full set of provisioning
    artifacts. Emitters only read `self.records`; all disk writes go through
    utils.output.write_artifacts.
    """

    def __init__(self, output_dir: str = "results", settings: Optional[GeneratorSettings] = None):
        self.output_dir = output_dir
        self.settings = settings or load_settings()
        self.records: Tuple[PhoneRecord, ...] = ()
        self.logger = logging.getLogger("ConfigGenerator")

    # ---------- sources ----------
    def set_records(self, records):
        self.records = tuple(records)
        self.logger.info(f"{len(self.records)} record(s) ready for generation")
        return self

    def load_csv(self, path: str, delimiter: str = ","):
        return self.set_records(load_csv(path, delimiter=delimiter))

    def load_database(self, path: str):
        return self.set_records(load_database(path))

    def load_connection(self, conn):
        return self.set_records(load_from_connection(conn))

    # ---------- generation ----------
    def build(self) -> List[Tuple[str, List[Artifact]]]:
        """Run every emitter in order; nothing is written."""
        return list(dispatch_emitters(self.records, self.settings))

    def build_files(self) -> Dict[str, str]:
        return {a.path: a.content for _, artifacts in self.build() for a in artifacts}

    def output_dirs(self) -> List[str]:
        return [self.settings.devices_dir, self.settings.users_dir, self.settings.routing_dir]

    def generate(self, atomic: bool = False) -> GenerationStats:
        stages = self.build()
        written = write_artifacts(self.output_dir, stages, dirs=self.output_dirs(), atomic=atomic)
        self.logger.message(f"Generation finished: {sum(len(a) for _, a in stages)} file(s), {written} bytes in {self.output_dir}")
        return self.stats()

    def stats(self) -> GenerationStats:
        return GenerationStats.from_records(list(self.records))
