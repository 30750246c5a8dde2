"""CloudFormation (SAM) template generation from the application context."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml

from cloudapp.context import CloudApplicationContext
from cloudapp.registration import FunctionRegistration, TableRegistration
from cloudapp.storage import table_env_var

LAMBDA_HANDLER = "cloudapp.runtime.aws_lambda.handler"
HTTP_API_ID = "HttpApi"


def resolve_stack_name(context: CloudApplicationContext) -> str:
    """``CLOUDAPP_STACK_NAME``, else the application module with dots and underscores dashed."""
    if context.settings.stack_name:
        return context.settings.stack_name
    module = (context.application or "cloudapp-app").partition(":")[0]
    return re.sub(r"[._]+", "-", module)


def logical_id(name: str, suffix: str) -> str:
    return re.sub(r"[^A-Za-z0-9]", "", name) + suffix


class StackGenerator:
    def __init__(self, context: CloudApplicationContext, code_uri: Path | str):
        self.context = context
        self.code_uri = str(code_uri)
        self.stack_name = resolve_stack_name(context)

    def generate(self) -> dict[str, Any]:
        resources: dict[str, Any] = {
            HTTP_API_ID: {
                "Type": "AWS::Serverless::HttpApi",
                "Properties": {"Name": f"{self.stack_name}-Api"},
            }
        }
        for table in self.context.tables:
            resources[logical_id(table.name, "Table")] = self._table(table)
        for function in self.context.functions:
            resources[logical_id(function.name, "Function")] = self._function(function)

        return {
            "AWSTemplateFormatVersion": "2010-09-09",
            "Transform": "AWS::Serverless-2016-10-31",
            "Description": f"{self.stack_name} (generated by cloudapp)",
            "Resources": resources,
            "Outputs": {
                "ApiUrl": {
                    "Description": "HTTP API endpoint URL",
                    "Value": {
                        "Fn::Sub": f"https://${{{HTTP_API_ID}}}.execute-api.${{AWS::Region}}.${{AWS::URLSuffix}}/"
                    },
                }
            },
        }

    def write(self, out_dir: Path) -> Path:
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / "template.yaml"
        path.write_text(yaml.safe_dump(self.generate(), sort_keys=False), encoding="utf-8")
        return path

    def _table(self, table: TableRegistration) -> dict[str, Any]:
        pk_attr, sk_attr = table.keys.attribute_names(table.entity_type)
        attributes = [{"AttributeName": pk_attr, "AttributeType": "S"}]
        key_schema = [{"AttributeName": pk_attr, "KeyType": "HASH"}]
        if sk_attr is not None:
            attributes.append({"AttributeName": sk_attr, "AttributeType": "S"})
            key_schema.append({"AttributeName": sk_attr, "KeyType": "RANGE"})

        properties: dict[str, Any] = {
            "TableName": table.table_name,
            "BillingMode": table.billing_mode,
            "AttributeDefinitions": attributes,
            "KeySchema": key_schema,
        }
        if table.billing_mode == "PROVISIONED":
            properties["ProvisionedThroughput"] = {"ReadCapacityUnits": 5, "WriteCapacityUnits": 5}
        return {
            "Type": "AWS::DynamoDB::Table",
            "DeletionPolicy": "Delete",
            "UpdateReplacePolicy": "Delete",
            "Properties": properties,
        }

    def _function(self, function: FunctionRegistration) -> dict[str, Any]:
        lambda_defaults = self.context.defaults.lambda_
        variables: dict[str, Any] = {"CLOUDAPP_FUNCTION": function.name}
        if self.context.application:
            variables["CLOUDAPP_APPLICATION"] = self.context.application
        policies = []
        for table in self.context.tables:
            table_ref = {"Ref": logical_id(table.name, "Table")}
            variables[table_env_var(table.entity_type)] = table_ref
            policies.append({"DynamoDBCrudPolicy": {"TableName": table_ref}})

        properties: dict[str, Any] = {
            "FunctionName": f"{self.stack_name}-{function.name}",
            "Runtime": lambda_defaults.runtime,
            "Handler": LAMBDA_HANDLER,
            "CodeUri": self.code_uri,
            "MemorySize": function.memory_mb,
            "Timeout": function.timeout_seconds,
            "Architectures": [lambda_defaults.architecture],
            "Environment": {"Variables": variables},
            "Events": {
                "Api": {
                    "Type": "HttpApi",
                    "Properties": {
                        "ApiId": {"Ref": HTTP_API_ID},
                        "Method": function.http_api.method.value,
                        "Path": function.http_api.route,
                    },
                }
            },
        }
        if policies:
            properties["Policies"] = policies
        return {"Type": "AWS::Serverless::Function", "Properties": properties}
