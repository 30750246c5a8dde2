"""Execution modes and the immutable context handed to runtimes."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

from cloudapp.registration import CloudDefaults, FunctionRegistration, TableRegistration
from cloudapp.services import ServiceCollection
from cloudapp.settings import Settings


class ExecutionMode(str, Enum):
    LOCAL = "local"
    LAMBDA = "lambda"
    DEPLOY = "deploy"


class CliCommand(str, Enum):
    NONE = "none"
    LIST = "list"
    SYNTH = "synth"
    DEPLOY = "deploy"
    DIFF = "diff"
    DESTROY = "destroy"


_DEPLOY_COMMANDS = (CliCommand.DEPLOY, CliCommand.SYNTH, CliCommand.DESTROY, CliCommand.DIFF)


def detect_mode_and_command(
    args: Sequence[str],
    environ: Mapping[str, str] | None = None,
) -> tuple[ExecutionMode, CliCommand]:
    """Lambda when the Lambda runtime API is present, else the first known verb in ``args``."""
    environ = os.environ if environ is None else environ
    if environ.get("AWS_LAMBDA_RUNTIME_API"):
        return ExecutionMode.LAMBDA, CliCommand.NONE
    for command in _DEPLOY_COMMANDS:
        if command.value in args:
            return ExecutionMode.DEPLOY, command
    if CliCommand.LIST.value in args:
        return ExecutionMode.LOCAL, CliCommand.LIST
    return ExecutionMode.LOCAL, CliCommand.NONE


@dataclass(frozen=True, slots=True)
class CloudApplicationContext:
    """Snapshot of everything discovered at build time, shared with the runtime."""

    args: tuple[str, ...]
    mode: ExecutionMode
    command: CliCommand
    functions: tuple[FunctionRegistration, ...]
    tables: tuple[TableRegistration, ...]
    defaults: CloudDefaults
    services: ServiceCollection
    settings: Settings
    application: str | None = None

    def find_function(self, name: str) -> FunctionRegistration | None:
        for registration in self.functions:
            if registration.name == name:
                return registration
        return None
