import enum
import logging
from typing import Iterator, Union

from pydantic import BaseModel, ConfigDict, Field


logger = logging.getLogger(__name__)


class RunState(enum.Enum):
    NOT_RUN = "not-run"
    DONE = "done"


class NodeEntry(BaseModel):
    ip: str
    hostname: str


class HostMapping(BaseModel):
    """Unique node entries keyed by IP, in the order the nodes were listed.

    A repeated IP keeps its original position and takes the later hostname.
    """

    hosts: dict[str, str] = Field(default_factory=dict)

    def add(self, entry: NodeEntry) -> None:
        previous = self.hosts.get(entry.ip)
        if previous is not None and previous != entry.hostname:
            logger.debug(
                "Host (%s) with (%s) replaced by (%s)",
                previous,
                entry.ip,
                entry.hostname,
            )
        self.hosts[entry.ip] = entry.hostname

    def entries(self) -> Iterator[NodeEntry]:
        for ip, hostname in self.hosts.items():
            yield NodeEntry(ip=ip, hostname=hostname)

    def __len__(self) -> int:
        return len(self.hosts)

    def __bool__(self) -> bool:
        return bool(self.hosts)


class ConfigFound(BaseModel):
    document: dict


class ConfigNotFound(BaseModel):
    pass


class ConfigReadError(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    cause: Exception


ConfigReadResult = Union[ConfigFound, ConfigNotFound, ConfigReadError]


class ConfigAction(enum.Enum):
    CREATED = "created"
    PATCHED = "patched"
    UNCHANGED = "unchanged"


class ConfigUpdate(BaseModel):
    action: ConfigAction
    patch: list[dict] = Field(default_factory=list)


class RestartTrigger(BaseModel):
    annotation: str
    restarted_at: str


class ResolverConfig(BaseModel):
    in_cluster: bool
    idle_interval: float
    template_path: str
    rendered_path: str
    log_level: str = "INFO"
