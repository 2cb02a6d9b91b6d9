import asyncio
import copy
import logging
import shlex
import subprocess
import time
from dataclasses import dataclass
from typing import List, Mapping, Sequence

from utopia_orchestration.domain.container import Container, RunSpec
from utopia_orchestration.domain.errors import BackendInvocationError, ExecutionTimeoutError
from utopia_orchestration.domain.network import Network
from utopia_orchestration.domain.ports import Adapter, AdapterConfig
from utopia_orchestration.domain.stats import Stats
from utopia_orchestration.services import builders
from utopia_orchestration.services.parsing import (
    parse_container_lines,
    parse_network_lines,
    parse_stats_lines,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    exit_code: int
    stdout: str
    stderr: str


class DockerCLI(Adapter):
    """Adapter driving the docker binary through the shell."""

    def __init__(
        self,
        binary: str = "docker",
        username: str | None = None,
        password: str | None = None,
        config: AdapterConfig | None = None,
    ):
        self.binary = binary
        self.config = config or AdapterConfig()
        if username and password:
            self._login(username, password)

    def with_config(self, config: AdapterConfig) -> "DockerCLI":
        clone = copy.copy(self)
        clone.config = config
        return clone

    # -------------------------------
    # Process plumbing
    # -------------------------------
    def _login(self, username: str, password: str) -> None:
        """Log in once; a failure is reported but later calls still go ahead."""
        command = " ".join([shlex.quote(self.binary), *builders.build_login_args(username)])
        result = subprocess.run(
            command,
            shell=True,
            input=password,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            logger.error(f"Docker login failed for {username}: {result.stderr.strip()}")
        else:
            logger.info(f"Docker login succeeded for {username}")

    async def _execute(self, args: List[str], timeout: int = -1) -> CommandResult:
        """Run already-quoted builder tokens through the shell."""
        argv = builders.with_timeout([shlex.quote(self.binary), *args], timeout)
        command = " ".join(argv)
        logger.debug(f"Running: {command}")
        process = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()
        return CommandResult(
            exit_code=process.returncode,
            stdout=stdout.decode(errors="replace"),
            stderr=stderr.decode(errors="replace"),
        )

    def _check(self, result: CommandResult, action: str) -> CommandResult:
        if result.exit_code != 0:
            logger.error(f"docker {action} exited with {result.exit_code}: {result.stderr.strip()}")
            raise BackendInvocationError(
                f"Docker {action} failed", result.stderr.strip(), result.exit_code
            )
        return result

    # -------------------------------
    # Networks
    # -------------------------------
    async def create_network(self, name: str, internal: bool = False) -> bool:
        result = await self._execute(builders.build_network_create_args(name, internal))
        self._check(result, "network create")
        return True

    async def remove_network(self, name: str) -> bool:
        result = await self._execute(builders.build_network_remove_args(name))
        self._check(result, "network rm")
        return True

    async def network_connect(self, container: str, network: str) -> bool:
        result = await self._execute(builders.build_network_connect_args(container, network))
        self._check(result, "network connect")
        return True

    async def network_disconnect(
        self, container: str, network: str, force: bool = False
    ) -> bool:
        result = await self._execute(
            builders.build_network_disconnect_args(container, network, force)
        )
        self._check(result, "network disconnect")
        return True

    async def list_networks(self) -> List[Network]:
        result = await self._execute(builders.build_network_list_args())
        self._check(result, "network ls")
        return parse_network_lines(result.stdout)

    # -------------------------------
    # Containers
    # -------------------------------
    async def get_stats(
        self,
        container: str | None = None,
        filters: Mapping[str, str] | None = None,
    ) -> List[Stats]:
        if container is None:
            container_ids = [c.id for c in await self.list(filters=filters)]
            if not container_ids and filters:
                return []
        else:
            container_ids = [container]

        result = await self._execute(builders.build_stats_args(container_ids))
        self._check(result, "stats")
        return parse_stats_lines(result.stdout)

    async def pull(self, image: str) -> bool:
        result = await self._execute(builders.build_pull_args(image))
        if result.exit_code != 0:
            logger.warning(f"Pull of {image} failed: {result.stderr.strip()}")
            return False
        return True

    async def list(self, filters: Mapping[str, str] | None = None) -> List[Container]:
        result = await self._execute(builders.build_list_args(filters))
        self._check(result, "ps")
        return parse_container_lines(result.stdout)

    async def run(self, spec: RunSpec) -> str:
        created_at = int(time.time() * 1000)
        result = await self._execute(builders.build_run_args(spec, self.config, created_at))
        self._check(result, "run")
        return result.stdout.strip()

    async def execute(
        self,
        name: str,
        command: Sequence[str],
        env: Mapping[str, str] | None = None,
        timeout: int = -1,
    ) -> bool:
        result = await self._execute(builders.build_exec_args(name, command, env), timeout=timeout)
        if result.exit_code == builders.TIMEOUT_EXIT_CODE:
            raise ExecutionTimeoutError(f"Command in {name} timed out after {timeout}s")
        self._check(result, "exec")
        return True

    async def remove(self, name: str, force: bool = False) -> bool:
        result = await self._execute(builders.build_remove_args(name, force))
        self._check(result, "rm")
        # docker echoes the removed name; exit code 0 alone is not proof
        if name not in result.stdout:
            raise BackendInvocationError(
                f"Docker rm did not confirm removal of {name}",
                result.stderr.strip() or result.stdout.strip(),
                result.exit_code,
            )
        return True
