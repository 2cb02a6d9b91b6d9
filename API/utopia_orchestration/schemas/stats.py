from pydantic import BaseModel
from typing import Dict, List


class StatsResponse(BaseModel):
    container_id: str
    container_name: str
    cpu_usage: float
    memory_usage: float
    disk_io: Dict[str, float]
    memory_io: Dict[str, float]
    network_io: Dict[str, float]
    invalid_fields: List[str]

    class Config:
        json_schema_extra = {
            "example": {
                "container_id": "9a0b8c7d6e5f",
                "container_name": "web",
                "cpu_usage": 0.45,
                "memory_usage": 0.0,
                "disk_io": {"in": 12300000.0, "out": 0.0},
                "memory_io": {"in": 52428800.0, "out": 1073741824.0},
                "network_io": {"in": 1288490188.8, "out": 2048.0},
                "invalid_fields": ["memoryUsage"]
            }
        }
