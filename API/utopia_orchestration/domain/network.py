from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class Network:
    name: str = ""
    id: str = ""
    driver: str = ""
    scope: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Network":
        return cls(
            name=data.get("name") or "",
            id=data.get("id") or "",
            driver=data.get("driver") or "",
            scope=data.get("scope") or "",
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "id": self.id,
            "driver": self.driver,
            "scope": self.scope,
        }
