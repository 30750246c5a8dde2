"""
cloudapp: run HTTP functions and key-value tables locally, on AWS Lambda,
or deploy them with CloudFormation, without changing application code.

Usage:
    from cloudapp import CloudApplication

    builder = CloudApplication.create_builder()
    builder.add_functions().from_module("myapp.functions")
    builder.add_tables().from_module("myapp.models")
    application = builder.build()

    if __name__ == "__main__":
        application.run()
"""

from cloudapp.abstractions import (
    HttpFunction,
    Method,
    PartitionKey,
    Shape,
    SortKey,
    Table,
    TableEntity,
    function_config,
    http_api,
    table_name,
)
from cloudapp.exceptions import (
    BindingError,
    CloudAppError,
    ConfigurationError,
    DependencyValidationError,
    DeploymentError,
    FunctionInvocationError,
    NotFoundError,
    TableConfigurationError,
)
from cloudapp.hosting import CloudApplication, CloudApplicationBuilder, load_application

__version__ = "0.1.0"

__all__ = [
    "BindingError",
    "CloudAppError",
    "CloudApplication",
    "CloudApplicationBuilder",
    "ConfigurationError",
    "DependencyValidationError",
    "DeploymentError",
    "FunctionInvocationError",
    "HttpFunction",
    "Method",
    "NotFoundError",
    "PartitionKey",
    "Shape",
    "SortKey",
    "Table",
    "TableConfigurationError",
    "TableEntity",
    "function_config",
    "http_api",
    "load_application",
    "table_name",
]
