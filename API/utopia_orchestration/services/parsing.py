"""
Decoding of docker output into domain objects.

The docker binary prints either one JSON object per line (``--format json``)
or whitespace separated columns (older ``--format '{{.ID}} ...'`` templates).
The Engine API answers with JSON using its own field names; the tables below
map those names onto ours.
"""
import json
import logging
import math
from typing import Any, Dict, List, Mapping

from utopia_orchestration.domain.container import Container
from utopia_orchestration.domain.errors import ParseError
from utopia_orchestration.domain.network import Network
from utopia_orchestration.domain.stats import Stats

logger = logging.getLogger(__name__)

UNITS: Dict[str, int] = {
    "B": 1,
    "KB": 1000,
    "kB": 1000,
    "MB": 1000**2,
    "GB": 1000**3,
    "TB": 1000**4,
    "KiB": 1024,
    "MiB": 1024**2,
    "GiB": 1024**3,
    "TiB": 1024**4,
}
# "1KiB" ends with "B" too, so the longest suffix has to win
_SUFFIXES = sorted(UNITS, key=len, reverse=True)

# docker ps / docker network ls --format json
CLI_CONTAINER_FIELDS = {"ID": "id", "Names": "name", "Status": "status", "Labels": "labels"}
CLI_NETWORK_FIELDS = {"ID": "id", "Name": "name", "Driver": "driver", "Scope": "scope"}
# GET /containers/json, GET /networks
API_CONTAINER_FIELDS = {"Id": "id", "Names": "name", "Status": "status", "Labels": "labels"}
API_NETWORK_FIELDS = {"Id": "id", "Name": "name", "Driver": "driver", "Scope": "scope"}


# -------------------------------
# Units and percentages
# -------------------------------
def _parse_quantity(text: str) -> float:
    text = text.strip()
    multiplier = 1
    number = text
    for suffix in _SUFFIXES:
        if text.endswith(suffix):
            multiplier = UNITS[suffix]
            number = text[: -len(suffix)]
            break
    try:
        return float(number.strip()) * multiplier
    except ValueError:
        raise ParseError(f"Invalid quantity: {text!r}")


def parse_io_stats(text: str) -> Dict[str, float]:
    """Parse ``"12.3MB / 1.2GiB"`` into ``{"in": 12300000.0, "out": 1288490188.8}``."""
    parts = text.split(" / ")
    if len(parts) != 2:
        raise ParseError(f"Expected '<in> / <out>', got {text!r}")
    return {"in": _parse_quantity(parts[0]), "out": _parse_quantity(parts[1])}


def parse_percentage(value: Any) -> float | None:
    """``"12.34%"`` -> 0.1234. None when the value is not a usable percentage."""
    if value is None:
        return None
    try:
        number = float(str(value).strip().rstrip("%"))
    except ValueError:
        return None
    if number < 0 or math.isnan(number):
        return None
    return number / 100


# -------------------------------
# Labels
# -------------------------------
def parse_labels(text: str) -> Dict[str, str]:
    labels: Dict[str, str] = {}
    for pair in text.split(","):
        key_value = pair.split("=")
        if len(key_value) == 2:
            labels[key_value[0]] = key_value[1]
    return labels


# -------------------------------
# CLI output
# -------------------------------
def _lines(stdout: str) -> List[str]:
    return [line.strip() for line in stdout.splitlines() if line.strip()]


def _json_line(line: str) -> Dict[str, Any]:
    try:
        data = json.loads(line)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid JSON line {line!r}: {exc}") from exc
    if not isinstance(data, dict):
        raise ParseError(f"Expected a JSON object, got {line!r}")
    return data


def _columns(line: str, names: List[str], maxsplit: int = -1) -> Dict[str, str]:
    parts = line.split(None, maxsplit)
    if len(parts) != len(names):
        raise ParseError(f"Expected {len(names)} columns, got {len(parts)} in {line!r}")
    return dict(zip(names, parts))


def parse_container_lines(stdout: str) -> List[Container]:
    containers = []
    for line in _lines(stdout):
        if line.startswith("{"):
            data = _json_line(line)
            record = {ours: data.get(theirs) for theirs, ours in CLI_CONTAINER_FIELDS.items()}
            labels = record["labels"]
            record["labels"] = parse_labels(labels) if isinstance(labels, str) else labels
        else:
            # legacy: ID NAME STATUS, status may contain spaces ("Up 3 minutes")
            record = _columns(line, ["id", "name", "status"], maxsplit=2)
        containers.append(Container.from_dict(record))
    return containers


def parse_network_lines(stdout: str) -> List[Network]:
    networks = []
    for line in _lines(stdout):
        if line.startswith("{"):
            data = _json_line(line)
            record = {ours: data.get(theirs) for theirs, ours in CLI_NETWORK_FIELDS.items()}
        else:
            record = _columns(line, ["id", "name", "driver", "scope"])
        networks.append(Network.from_dict(record))
    return networks


def stats_from_cli(data: Mapping[str, Any]) -> Stats:
    invalid = set()
    cpu = parse_percentage(data.get("CPUPerc"))
    if cpu is None:
        invalid.add("cpuUsage")
        logger.warning(f"Unreadable CPUPerc {data.get('CPUPerc')!r} for {data.get('Name')}")
    memory = parse_percentage(data.get("MemPerc"))
    if memory is None:
        invalid.add("memoryUsage")
        logger.warning(f"Unreadable MemPerc {data.get('MemPerc')!r} for {data.get('Name')}")

    try:
        return Stats(
            container_id=data["ID"],
            container_name=data["Name"],
            cpu_usage=cpu or 0.0,
            memory_usage=memory or 0.0,
            disk_io=parse_io_stats(data["BlockIO"]),
            memory_io=parse_io_stats(data["MemUsage"]),
            network_io=parse_io_stats(data["NetIO"]),
            invalid_fields=frozenset(invalid),
        )
    except (KeyError, AttributeError) as exc:
        raise ParseError(f"Stats record is missing {exc}") from exc


def parse_stats_lines(stdout: str) -> List[Stats]:
    return [stats_from_cli(_json_line(line)) for line in _lines(stdout)]


# -------------------------------
# Engine API responses
# -------------------------------
def container_from_api(data: Mapping[str, Any]) -> Container:
    record = {ours: data.get(theirs) for theirs, ours in API_CONTAINER_FIELDS.items()}
    names = record["name"] or []
    if isinstance(names, list):
        names = names[0] if names else ""
    record["name"] = names.lstrip("/")
    record["status"] = record["status"] or data.get("State") or ""
    return Container.from_dict(record)


def network_from_api(data: Mapping[str, Any]) -> Network:
    return Network.from_dict(
        {ours: data.get(theirs) for theirs, ours in API_NETWORK_FIELDS.items()}
    )


def _cpu_fraction(data: Mapping[str, Any]) -> float | None:
    try:
        cpu = data["cpu_stats"]
        precpu = data["precpu_stats"]
        cpu_delta = cpu["cpu_usage"]["total_usage"] - precpu["cpu_usage"]["total_usage"]
        system_delta = cpu["system_cpu_usage"] - precpu.get("system_cpu_usage", 0)
        online = cpu.get("online_cpus") or len(cpu["cpu_usage"].get("percpu_usage") or []) or 1
    except (KeyError, TypeError):
        return None
    if system_delta <= 0 or cpu_delta < 0:
        return 0.0
    return cpu_delta / system_delta * online


def _memory(data: Mapping[str, Any]) -> tuple[float | None, Dict[str, float]]:
    memory = data.get("memory_stats") or {}
    usage = float(memory.get("usage") or 0)
    limit = float(memory.get("limit") or 0)
    # the docker CLI subtracts page cache from usage
    cache = (memory.get("stats") or {}).get("inactive_file") or 0
    usage = max(usage - cache, 0.0)
    fraction = usage / limit if limit > 0 else None
    return fraction, {"in": usage, "out": limit}


def _block_io(data: Mapping[str, Any]) -> Dict[str, float]:
    entries = (data.get("blkio_stats") or {}).get("io_service_bytes_recursive") or []
    totals = {"in": 0.0, "out": 0.0}
    for entry in entries:
        op = str(entry.get("op", "")).lower()
        if op == "read":
            totals["in"] += entry.get("value", 0)
        elif op == "write":
            totals["out"] += entry.get("value", 0)
    return totals


def _network_io(data: Mapping[str, Any]) -> Dict[str, float]:
    totals = {"in": 0.0, "out": 0.0}
    for interface in (data.get("networks") or {}).values():
        totals["in"] += interface.get("rx_bytes", 0)
        totals["out"] += interface.get("tx_bytes", 0)
    return totals


def stats_from_api(data: Mapping[str, Any]) -> Stats:
    """Decode the body of ``GET /containers/{id}/stats?stream=false``."""
    if not isinstance(data, Mapping) or "id" not in data:
        raise ParseError("Stats response has no container id")

    invalid = set()
    cpu = _cpu_fraction(data)
    if cpu is None:
        invalid.add("cpuUsage")
    memory, memory_io = _memory(data)
    if memory is None:
        invalid.add("memoryUsage")

    return Stats(
        container_id=data["id"],
        container_name=str(data.get("name") or "").lstrip("/"),
        cpu_usage=cpu or 0.0,
        memory_usage=memory or 0.0,
        disk_io=_block_io(data),
        memory_io=memory_io,
        network_io=_network_io(data),
        invalid_fields=frozenset(invalid),
    )
