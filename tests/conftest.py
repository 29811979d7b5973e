import json

import pytest
from unittest.mock import MagicMock
from botocore.exceptions import ClientError


def client_error(code, operation="GetParameter", message="test error"):
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def registry_entry(parameter_name, variable_name, function_key, function_name):
    """A subscriber parameter as written by the provisioning step."""
    return {
        "Name": f"/subscriber/{parameter_name}/{variable_name}/{function_key}",
        "Value": json.dumps({"lambda": function_name, "environment": variable_name}),
    }


# =============================================================================
# TEST FIXTURES AND SETUP
# =============================================================================

@pytest.fixture
def functions():
    """Environment variables of the fake Lambda functions, keyed by name."""
    return {
        "apiFn": {"HOST": "10.0.0.1", "LOG_LEVEL": "INFO"},
        "workerFn": {"HOST": "10.0.0.1", "QUEUE": "jobs"},
        "reportFn": {},
    }


@pytest.fixture
def mock_lambda(functions):
    """Lambda client backed by the `functions` dict."""
    client = MagicMock()
    revisions = {name: 1 for name in functions}

    def get_function_configuration(FunctionName):
        if FunctionName not in functions:
            raise client_error("ResourceNotFoundException", "GetFunctionConfiguration")
        return {
            "FunctionName": FunctionName,
            "Environment": {"Variables": dict(functions[FunctionName])},
            "RevisionId": f"rev-{revisions[FunctionName]}",
        }

    def update_function_configuration(FunctionName, Environment, RevisionId=None):
        if FunctionName not in functions:
            raise client_error("ResourceNotFoundException", "UpdateFunctionConfiguration")
        if RevisionId is not None and RevisionId != f"rev-{revisions[FunctionName]}":
            raise client_error("PreconditionFailedException", "UpdateFunctionConfiguration")
        functions[FunctionName] = dict(Environment["Variables"])
        revisions[FunctionName] += 1
        return {"FunctionName": FunctionName}

    client.get_function_configuration.side_effect = get_function_configuration
    client.update_function_configuration.side_effect = update_function_configuration
    return client


@pytest.fixture
def parameter_values():
    return {"DbHost": "10.0.0.5"}


@pytest.fixture
def registry_entries():
    return [
        registry_entry("DbHost", "HOST", "api", "apiFn"),
        registry_entry("DbHost", "HOST", "worker", "workerFn"),
    ]


@pytest.fixture
def mock_ssm(parameter_values, registry_entries):
    """SSM client serving `parameter_values` and a single page of `registry_entries`."""
    client = MagicMock()

    def get_parameter(Name, WithDecryption=False):
        if Name not in parameter_values:
            raise client_error("ParameterNotFound")
        return {"Parameter": {"Name": Name, "Value": parameter_values[Name]}}

    def get_parameters_by_path(Path, Recursive=False, WithDecryption=False, NextToken=None):
        return {"Parameters": [p for p in registry_entries if p["Name"].startswith(Path)]}

    client.get_parameter.side_effect = get_parameter
    client.get_parameters_by_path.side_effect = get_parameters_by_path
    return client
