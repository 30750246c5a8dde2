"""
Runtimes, one per execution mode.

- local: FastAPI app served by uvicorn, in-memory tables
- lambda: API Gateway proxy handler pinned to one function, DynamoDB tables
- deploy: CloudFormation synth/diff/deploy/destroy through the AWS CLI

Runtime modules are imported lazily so a Lambda cold start never loads
uvicorn and the local server never loads the deploy pipeline.
"""

from __future__ import annotations

from typing import Protocol

from cloudapp.context import CloudApplicationContext, ExecutionMode


class Runtime(Protocol):
    def run(self, context: CloudApplicationContext) -> None: ...


def create_runtime(mode: ExecutionMode) -> Runtime:
    if mode is ExecutionMode.LOCAL:
        from cloudapp.runtime.local import LocalRuntime

        return LocalRuntime()
    if mode is ExecutionMode.LAMBDA:
        from cloudapp.runtime.aws_lambda import LambdaRuntime

        return LambdaRuntime()
    from cloudapp.deploy.pipeline import DeployRuntime

    return DeployRuntime()


__all__ = ["Runtime", "create_runtime"]
