"""
Infrastructure generation and deployment.

- StackGenerator: CloudFormation (SAM) template from registrations
- DeployRuntime: synth / diff / deploy / destroy through the AWS CLI
"""

from cloudapp.deploy.pipeline import DeployRuntime
from cloudapp.deploy.template import StackGenerator, resolve_stack_name

__all__ = ["DeployRuntime", "StackGenerator", "resolve_stack_name"]
