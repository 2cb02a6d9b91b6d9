from dataclasses import dataclass, field
from typing import Any, Mapping

from utopia_orchestration.domain.container import frozen_mapping
from utopia_orchestration.domain.errors import ParseError

IO_KEYS = frozenset({"in", "out"})


def _io(value: Mapping[str, Any], label: str) -> Mapping[str, float]:
    if set(value) != IO_KEYS:
        raise ParseError(f"{label} must have exactly 'in' and 'out', got {sorted(value)}")
    return frozen_mapping({"in": float(value["in"]), "out": float(value["out"])})


@dataclass(frozen=True)
class Stats:
    """
    Resource usage snapshot of one container.

    cpu_usage and memory_usage are fractions (0.45 means 45%), the IO
    mappings hold byte counts. invalid_fields names the percentage fields
    the backend sent in a form we could not read; those are reported as 0.
    """
    container_id: str
    container_name: str
    cpu_usage: float
    memory_usage: float
    disk_io: Mapping[str, float] = field(hash=False)
    memory_io: Mapping[str, float] = field(hash=False)
    network_io: Mapping[str, float] = field(hash=False)
    invalid_fields: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self):
        if self.cpu_usage < 0 or self.memory_usage < 0:
            raise ParseError("cpu_usage and memory_usage must be >= 0")
        object.__setattr__(self, "disk_io", _io(self.disk_io, "disk_io"))
        object.__setattr__(self, "memory_io", _io(self.memory_io, "memory_io"))
        object.__setattr__(self, "network_io", _io(self.network_io, "network_io"))
        object.__setattr__(self, "invalid_fields", frozenset(self.invalid_fields))

    @property
    def is_partial(self) -> bool:
        return bool(self.invalid_fields)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Stats":
        try:
            return cls(
                container_id=data["containerId"],
                container_name=data["containerName"],
                cpu_usage=float(data["cpuUsage"]),
                memory_usage=float(data["memoryUsage"]),
                disk_io=data["diskIO"],
                memory_io=data["memoryIO"],
                network_io=data["networkIO"],
                invalid_fields=frozenset(data.get("invalidFields") or ()),
            )
        except ParseError:
            raise
        except (KeyError, TypeError, ValueError) as exc:
            raise ParseError(f"Malformed stats record: {exc}") from exc

    def to_dict(self) -> dict[str, Any]:
        return {
            "containerId": self.container_id,
            "containerName": self.container_name,
            "cpuUsage": self.cpu_usage,
            "memoryUsage": self.memory_usage,
            "diskIO": dict(self.disk_io),
            "memoryIO": dict(self.memory_io),
            "networkIO": dict(self.network_io),
            "invalidFields": sorted(self.invalid_fields),
        }
