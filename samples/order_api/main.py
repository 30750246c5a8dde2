"""Order API entry point.

    python -m samples.order_api.main            # local server on :5000
    python -m samples.order_api.main list
    python -m cloudapp samples.order_api.main:application deploy
"""

from __future__ import annotations

from cloudapp import CloudApplication, CloudApplicationBuilder
from samples.order_api import functions, models


def create_builder(args: list[str] | None = None) -> CloudApplicationBuilder:
    builder = CloudApplication.create_builder(args)
    builder.add_functions().from_module(functions)
    builder.add_tables().from_module(models)
    builder.configure_defaults(lambda defaults: setattr(defaults.lambda_, "timeout_seconds", 15))
    return builder


application = create_builder().build()

if __name__ == "__main__":
    application.run()
