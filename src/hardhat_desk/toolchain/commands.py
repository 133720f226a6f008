"""Argument construction for toolchain invocations.

Compile, test, deploy and friends are just named invocations with different
arguments; nothing here runs a process.
"""

from __future__ import annotations

from typing import Optional, Sequence

from ..core.config_schema import NetworkConfig, ToolchainConfig
from ..executor import CommandInvocation

# Evaluates a snippet with the Hardhat runtime environment in scope. The
# snippet is the body of an async function, so it can ``await`` and
# ``return`` a value, which is printed as JSON (bigints as strings).
CONSOLE_WRAPPER = """\
const hre = require("hardhat");
const ethers = hre.ethers;
const provider = ethers ? ethers.provider : hre.network.provider;
(async () => {
%s
})()
  .then((value) => {
    if (value === undefined) return;
    if (typeof value === "string") { console.log(value); return; }
    console.log(JSON.stringify(value, (_k, v) => (typeof v === "bigint" ? v.toString() : v), 2));
  })
  .catch((error) => {
    console.error(error && error.stack ? error.stack : String(error));
    process.exitCode = 1;
  });
"""


class ToolchainCommands:
    """Builds ``CommandInvocation``s from configuration."""

    def __init__(self, toolchain: ToolchainConfig, network: NetworkConfig) -> None:
        self.toolchain = toolchain
        self.network = network

    def _hardhat(
        self,
        name: str,
        project_path: Optional[str],
        arguments: Sequence[str],
        *,
        timeout: Optional[float] = None,
    ) -> CommandInvocation:
        program, *prefix = self.toolchain.command
        return CommandInvocation(
            command_name=name,
            program=program,
            arguments=[*prefix, *arguments],
            project_path=project_path,
            timeout=timeout or self.toolchain.command_timeout,
        )

    def version(self, project_path: Optional[str] = None) -> CommandInvocation:
        return self._hardhat("version", project_path, ["--version"], timeout=self.toolchain.version_timeout)

    def install(self) -> CommandInvocation:
        program, *arguments = self.toolchain.install_command
        return CommandInvocation(
            command_name="install",
            program=program,
            arguments=arguments,
            timeout=self.toolchain.install_timeout,
        )

    def init(self, project_path: str) -> CommandInvocation:
        return self._hardhat("init", project_path, ["init", *self.toolchain.init_args])

    def compile(self, project_path: str) -> CommandInvocation:
        return self._hardhat("compile", project_path, ["compile"])

    def test(self, project_path: str) -> CommandInvocation:
        return self._hardhat("test", project_path, ["test"])

    def deploy(self, project_path: str, script: Optional[str] = None) -> CommandInvocation:
        return self._hardhat(
            "deploy",
            project_path,
            ["run", script or self.toolchain.deploy_script, "--network", self.network.name],
        )

    def task(self, project_path: str, task: str, arguments: Sequence[str] = ()) -> CommandInvocation:
        return self._hardhat(f"task:{task}", project_path, [task, *arguments])

    def verify(
        self,
        project_path: str,
        address: str,
        *,
        contract: Optional[str] = None,
        constructor_args: Sequence[str] = (),
    ) -> CommandInvocation:
        arguments = ["--network", self.network.name]
        if contract:
            arguments += ["--contract", contract]
        arguments.append(address)
        arguments += [arg.strip() for arg in constructor_args if arg.strip()]
        return self.task(project_path, "verify", arguments)

    def console_eval(self, project_path: str, source: str) -> CommandInvocation:
        return CommandInvocation(
            command_name="console",
            program=self.toolchain.node_program,
            arguments=["-e", CONSOLE_WRAPPER % source],
            project_path=project_path,
            env={"HARDHAT_NETWORK": self.network.name},
            timeout=self.toolchain.command_timeout,
        )

    def node(self, project_path: str) -> CommandInvocation:
        """The long-running local network; executed by the network manager."""
        return self._hardhat(
            "node",
            project_path,
            ["node", "--hostname", self.network.host, "--port", str(self.network.port)],
        )
