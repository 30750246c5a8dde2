"""AWS Lambda entry point.

Deployed functions name ``cloudapp.runtime.aws_lambda.handler`` directly; this
module keeps the same handler reachable as ``transports.aws_lambda_handler.handler``
for projects that vendor the transports directory.
"""

from __future__ import annotations

from cloudapp.runtime.aws_lambda import handler

__all__ = ["handler"]
