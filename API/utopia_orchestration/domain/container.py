from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


def frozen_mapping(value: Mapping[str, Any] | None) -> Mapping[str, Any]:
    """Read-only copy, so a frozen value cannot be changed through its mappings."""
    return MappingProxyType(dict(value or {}))


@dataclass(frozen=True)
class Container:
    name: str = ""
    id: str = ""
    status: str = ""
    labels: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "labels", frozen_mapping(self.labels))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Container":
        return cls(
            name=data.get("name") or "",
            id=data.get("id") or "",
            status=data.get("status") or "",
            labels=data.get("labels") or {},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "id": self.id,
            "status": self.status,
            "labels": dict(self.labels),
        }


@dataclass(frozen=True)
class RunSpec:
    """Everything needed to launch one container."""
    image: str
    name: str
    command: tuple[str, ...] = ()
    entrypoint: str = ""
    workdir: str = ""
    volumes: tuple[str, ...] = ()
    env: Mapping[str, str] = field(default_factory=dict, hash=False)
    labels: Mapping[str, str] = field(default_factory=dict, hash=False)
    hostname: str = ""
    network: str = ""
    remove: bool = False
    mount_folder: str = ""  # bound to /tmp inside the container

    def __post_init__(self):
        object.__setattr__(self, "command", tuple(self.command))
        object.__setattr__(self, "volumes", tuple(self.volumes))
        object.__setattr__(self, "env", frozen_mapping(self.env))
        object.__setattr__(self, "labels", frozen_mapping(self.labels))
