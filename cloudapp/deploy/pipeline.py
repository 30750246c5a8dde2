"""Deploy runtime: synth, diff, deploy and destroy through the AWS CLI."""

from __future__ import annotations

import shutil
import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path

import structlog

from cloudapp.context import CliCommand, CloudApplicationContext
from cloudapp.deploy.template import StackGenerator
from cloudapp.exceptions import DeploymentError

logger = structlog.get_logger(__name__)

CommandRunner = Callable[..., subprocess.CompletedProcess]


class DeployRuntime:
    """Drives the CloudFormation lifecycle for one application.

    Every failure is raised as :class:`DeploymentError` tagged with the
    stage it happened in; nothing is retried.
    """

    def __init__(
        self,
        *,
        project_dir: Path | None = None,
        runner: CommandRunner = subprocess.run,
        which: Callable[[str], str | None] = shutil.which,
    ):
        self.project_dir = (project_dir or Path.cwd()).resolve()
        self._runner = runner
        self._which = which

    def run(self, context: CloudApplicationContext) -> None:
        generator = StackGenerator(context, code_uri=self.project_dir)
        out_dir = self._out_dir(context)
        command = context.command

        if command is not CliCommand.SYNTH:
            self.check_prerequisites()

        if command is CliCommand.SYNTH:
            self.synth(generator, out_dir)
        elif command is CliCommand.DIFF:
            template = self.package(context, self.synth(generator, out_dir), out_dir)
            self.deploy(generator.stack_name, template, execute=False)
        elif command is CliCommand.DESTROY:
            self.destroy(generator.stack_name)
        else:
            logger.info("deploy.start", stack=generator.stack_name)
            template = self.package(context, self.synth(generator, out_dir), out_dir)
            self.deploy(generator.stack_name, template, execute=True)
            self.print_outputs(generator.stack_name)
            logger.info("deploy.complete", stack=generator.stack_name)

    def check_prerequisites(self) -> None:
        if self._which("aws") is None:
            raise DeploymentError("prerequisites", "The AWS CLI (aws) is required but was not found on PATH.")
        self._run("prerequisites", ["aws", "--version"], capture=True)

    def synth(self, generator: StackGenerator, out_dir: Path) -> Path:
        try:
            path = generator.write(out_dir)
        except OSError as exc:
            raise DeploymentError("synth", f"Could not write template to {out_dir}: {exc}") from exc
        logger.info("deploy.synthesized", template=str(path))
        return path

    def package(self, context: CloudApplicationContext, template: Path, out_dir: Path) -> Path:
        bucket = context.settings.artifact_bucket
        if not bucket:
            raise DeploymentError("package", "CLOUDAPP_ARTIFACT_BUCKET must name an S3 bucket for code uploads.")
        packaged = out_dir / "packaged.yaml"
        self._run(
            "package",
            [
                "aws", "cloudformation", "package",
                "--template-file", str(template),
                "--s3-bucket", bucket,
                "--output-template-file", str(packaged),
            ],
        )
        return packaged

    def deploy(self, stack_name: str, template: Path, *, execute: bool) -> None:
        args = [
            "aws", "cloudformation", "deploy",
            "--template-file", str(template),
            "--stack-name", stack_name,
            "--capabilities", "CAPABILITY_IAM", "CAPABILITY_AUTO_EXPAND",
        ]
        if not execute:
            args.append("--no-execute-changeset")
        self._run("deploy" if execute else "diff", args)

    def destroy(self, stack_name: str) -> None:
        logger.info("deploy.destroying", stack=stack_name)
        self._run("destroy", ["aws", "cloudformation", "delete-stack", "--stack-name", stack_name])
        self._run("destroy", ["aws", "cloudformation", "wait", "stack-delete-complete", "--stack-name", stack_name])
        logger.info("deploy.destroyed", stack=stack_name)

    def print_outputs(self, stack_name: str) -> None:
        result = self._run(
            "outputs",
            [
                "aws", "cloudformation", "describe-stacks",
                "--stack-name", stack_name,
                "--query", "Stacks[0].Outputs",
                "--output", "table",
            ],
            capture=True,
        )
        print(result.stdout)

    def _out_dir(self, context: CloudApplicationContext) -> Path:
        out_dir = context.settings.out_dir
        return out_dir if out_dir.is_absolute() else self.project_dir / out_dir

    def _run(self, stage: str, args: Sequence[str], *, capture: bool = False) -> subprocess.CompletedProcess:
        logger.debug("deploy.command", stage=stage, command=" ".join(args))
        try:
            result = self._runner(
                list(args),
                cwd=self.project_dir,
                capture_output=capture,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise DeploymentError(stage, f"Could not run {args[0]}: {exc}") from exc
        if result.returncode != 0:
            detail = (result.stderr or "").strip() if capture else ""
            message = f"{' '.join(args[:3])} failed (exit code {result.returncode})"
            raise DeploymentError(stage, f"{message}: {detail}" if detail else message)
        return result
