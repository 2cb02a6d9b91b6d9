"""
Construction of docker invocations.

The CLI builders return token lists that are joined and handed to the shell,
so every token is shell-quoted here: tokens with whitespace or shell
metacharacters come out single-quoted, plain words are left alone. The
Engine API builder returns the JSON body of ``POST /containers/create``.
"""
import re
import shlex
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from utopia_orchestration.domain.container import RunSpec
from utopia_orchestration.domain.ports import AdapterConfig

TIMEOUT_EXIT_CODE = 124  # exit status of coreutils `timeout`
MOUNT_FOLDER_TARGET = "/tmp"

_ENV_KEY_INVALID = re.compile(r"[^A-Za-z0-9_.-]")


def filter_env_key(key: str) -> str:
    return _ENV_KEY_INVALID.sub("", key)


def quote_token(token: str) -> str:
    if not token:
        return token
    return shlex.quote(token)


def _quoted(args: Iterable[str]) -> List[str]:
    return [quote_token(arg) for arg in args if arg]


def _label_value(value: str) -> str:
    return value.replace("'", "")


def provenance_label(config: AdapterConfig) -> str:
    return f"{config.namespace}-created"


def _env_args(env: Mapping[str, str] | None) -> List[str]:
    args = []
    for key, value in (env or {}).items():
        key = filter_env_key(key)
        if not key:
            continue
        args += ["--env", f"{key}={value or ''}"]
    return args


# -------------------------------
# docker run / exec
# -------------------------------
def build_run_args(spec: RunSpec, config: AdapterConfig, created_at_ms: int) -> List[str]:
    args = ["run", "-d"]
    if spec.remove:
        args.append("--rm")
    if spec.network:
        args.append(f"--network={spec.network}")
    if spec.entrypoint:
        args.append(f"--entrypoint={spec.entrypoint}")
    if config.cpus > 0:
        args.append(f"--cpus={config.cpus}")
    if config.memory > 0:
        args.append(f"--memory={config.memory}m")
    if config.swap > 0:
        args.append(f"--memory-swap={config.swap}m")
    args.append(f"--label={provenance_label(config)}={created_at_ms}")
    args.append(f"--name={spec.name}")
    if spec.mount_folder:
        args += ["--volume", f"{spec.mount_folder}:{MOUNT_FOLDER_TARGET}:rw"]
    for volume in spec.volumes:
        if volume:
            args += ["--volume", volume]
    for key, value in spec.labels.items():
        args += ["--label", f"{key}={_label_value(value)}"]
    if spec.workdir:
        args += ["--workdir", spec.workdir]
    if spec.hostname:
        args += ["--hostname", spec.hostname]
    args += _env_args(spec.env)
    args.append(spec.image)
    args += spec.command
    return _quoted(args)


def build_exec_args(
    name: str,
    command: Sequence[str],
    env: Mapping[str, str] | None = None,
) -> List[str]:
    return _quoted(["exec", *_env_args(env), name, *command])


def with_timeout(argv: List[str], timeout: int) -> List[str]:
    """Wrap a full command line in the host ``timeout`` utility (exit code 124 on expiry)."""
    if timeout > 0:
        return ["timeout", str(timeout), *argv]
    return argv


# -------------------------------
# Other commands
# -------------------------------
def build_list_args(filters: Mapping[str, str] | None = None) -> List[str]:
    args = ["ps", "--all", "--format", "json"]
    for key, value in (filters or {}).items():
        args += ["--filter", f"{key}={value}"]
    return _quoted(args)


def build_stats_args(container_ids: Iterable[str]) -> List[str]:
    return _quoted(["stats", "--no-trunc", "--format", "json", "--no-stream", *container_ids])


def build_remove_args(name: str, force: bool = False) -> List[str]:
    args = ["rm"]
    if force:
        args.append("--force")
    args.append(name)
    return _quoted(args)


def build_pull_args(image: str) -> List[str]:
    return _quoted(["pull", image])


def build_login_args(username: str) -> List[str]:
    return _quoted(["login", "--username", username, "--password-stdin"])


def build_network_create_args(name: str, internal: bool = False) -> List[str]:
    args = ["network", "create", name]
    if internal:
        args.append("--internal")
    return _quoted(args)


def build_network_remove_args(name: str) -> List[str]:
    return _quoted(["network", "rm", name])


def build_network_list_args() -> List[str]:
    return ["network", "ls", "--no-trunc", "--format", "json"]


def build_network_connect_args(container: str, network: str) -> List[str]:
    return _quoted(["network", "connect", network, container])


def build_network_disconnect_args(container: str, network: str, force: bool = False) -> List[str]:
    args = ["network", "disconnect"]
    if force:
        args.append("--force")
    return _quoted(args + [network, container])


# -------------------------------
# Engine API
# -------------------------------
def build_create_payload(spec: RunSpec, config: AdapterConfig, created_at_ms: int) -> Dict[str, Any]:
    """Body for ``POST /containers/create?name=<spec.name>``."""
    labels = {provenance_label(config): str(created_at_ms)}
    labels.update(spec.labels)

    env = [
        f"{filter_env_key(key)}={value or ''}"
        for key, value in spec.env.items()
        if filter_env_key(key)
    ]

    binds = [f"{spec.mount_folder}:{MOUNT_FOLDER_TARGET}:rw"] if spec.mount_folder else []
    binds += [volume for volume in spec.volumes if volume]

    host_config: Dict[str, Any] = {"AutoRemove": spec.remove}
    if binds:
        host_config["Binds"] = binds
    if spec.network:
        host_config["NetworkMode"] = spec.network
    if config.cpus > 0:
        host_config["NanoCpus"] = config.cpus * 10**9
    if config.memory > 0:
        host_config["Memory"] = config.memory * 1024 * 1024
    if config.swap > 0:
        host_config["MemorySwap"] = config.swap * 1024 * 1024

    payload: Dict[str, Any] = {
        "Image": spec.image,
        "Labels": labels,
        "HostConfig": host_config,
    }
    if spec.command:
        payload["Cmd"] = list(spec.command)
    if spec.entrypoint:
        payload["Entrypoint"] = [spec.entrypoint]
    if spec.workdir:
        payload["WorkingDir"] = spec.workdir
    if spec.hostname:
        payload["Hostname"] = spec.hostname
    if env:
        payload["Env"] = env
    return payload
