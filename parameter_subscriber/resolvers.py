"""
Subscription discovery.

Two strategies are supported:

Registry lookup:
    /subscriber/<parameterName>/<variableName>/<functionKey>
        → {"lambda": "<functionName>", "environment": "<variableName>"}

Embedded table (PARAMETER_SUBSCRIPTIONS):
    {"<parameterName>": [{"func": "<functionName>", "env": "<variableName>"}]}
"""

import json
from abc import ABC, abstractmethod
from types import MappingProxyType

from parameter_subscriber.config import logger
from parameter_subscriber.models import Subscription, SubscriptionSet, UpdateOutcome
from parameter_subscriber.parameters import fetch_parameters_by_path


class SubscriptionResolver(ABC):
    """Finds the functions subscribed to a parameter."""

    @abstractmethod
    def resolve(self, parameter_name):
        """Return the SubscriptionSet for `parameter_name`."""


def subscriber_parameter_path(namespace, parameter_name):
    """
    Registry path holding the subscriptions of a parameter.

    Hierarchical parameter names keep their slashes, only the leading one is
    dropped so the path never contains "//".
    """
    return f"{namespace.rstrip('/')}/{parameter_name.lstrip('/')}/"


def is_direct_subscriber_entry(path, name):
    """True if `name` is `<path><variableName>/<functionKey>`."""
    if not name.startswith(path):
        return False
    segments = name[len(path):].split("/")
    return len(segments) == 2 and all(segments)


def parse_registry_entry(parameter):
    """
    Parse one registry parameter into a Subscription.

    Returns:
        tuple: (Subscription, None) on success, (None, reason) otherwise
    """
    raw = parameter.get("Value")
    if raw is None or raw == "":
        return None, "no subscriber parameter value found"

    try:
        json_data = json.loads(raw)
    except json.JSONDecodeError as error:
        return None, f"invalid JSON ({error})"

    if not isinstance(json_data, dict):
        return None, "value is not a JSON object"

    function_name = json_data.get("lambda")
    variable_name = json_data.get("environment")
    if not isinstance(function_name, str) or not function_name:
        return None, "missing 'lambda'"
    if not isinstance(variable_name, str) or not variable_name:
        return None, "missing 'environment'"

    return Subscription(function_name, variable_name, source=parameter.get("Name")), None


class RegistryLookupResolver(SubscriptionResolver):
    """Discovers subscriptions from Parameter Store entries under a namespace."""

    def __init__(self, ssm_client, namespace="/subscriber", max_pages=100):
        self.ssm_client = ssm_client
        self.namespace = namespace
        self.max_pages = max_pages

    def resolve(self, parameter_name):
        path = subscriber_parameter_path(self.namespace, parameter_name)
        parameters = fetch_parameters_by_path(self.ssm_client, path, self.max_pages)
        logger.info(f"Found {len(parameters)} subscriber parameter(s) under {path}")

        subscriptions = []
        skipped = []
        for parameter in parameters:
            name = parameter.get("Name", "<unnamed>")
            if not is_direct_subscriber_entry(path, name):
                # Belongs to a deeper parameter, e.g. /app/db/port under /app/db.
                logger.debug(f"Ignoring subscriber parameter [{name}] of a nested parameter")
                continue
            logger.debug(f"Processing subscriber parameter [{name}]")
            subscription, reason = parse_registry_entry(parameter)
            if subscription is None:
                logger.warning(f"Skipping subscriber parameter [{name}]: {reason}")
                skipped.append(UpdateOutcome.skipped_entry(name, reason))
            else:
                subscriptions.append(subscription)

        return SubscriptionSet(parameter_name, tuple(subscriptions), tuple(skipped))


def parse_subscription_table(raw):
    """
    Parse the embedded subscription table.

    A missing or malformed document yields an empty table so a bad deploy
    leaves propagation with nothing to do instead of failing every
    invocation. Rows are kept as-is and validated at resolve time.

    Args:
        raw (str | None): JSON document from PARAMETER_SUBSCRIPTIONS

    Returns:
        Mapping[str, tuple]: read-only parameter name → rows
    """
    if not raw:
        return MappingProxyType({})

    try:
        document = json.loads(raw)
    except json.JSONDecodeError as error:
        logger.warning(f"PARAMETER_SUBSCRIPTIONS is not valid JSON, using empty table: {error}")
        return MappingProxyType({})

    if not isinstance(document, dict):
        logger.warning("PARAMETER_SUBSCRIPTIONS is not a JSON object, using empty table")
        return MappingProxyType({})

    table = {}
    for parameter_name, rows in document.items():
        if isinstance(rows, list):
            table[parameter_name] = tuple(rows)
        else:
            logger.warning(f"Ignoring subscriptions for {parameter_name}: expected a list")
    logger.info(f"Loaded subscription table for {len(table)} parameter(s)")
    return MappingProxyType(table)


class EmbeddedTableResolver(SubscriptionResolver):
    """Looks subscriptions up in a table injected at deploy time."""

    def __init__(self, table):
        self.table = table

    def resolve(self, parameter_name):
        rows = self.table.get(parameter_name, ())
        subscriptions = []
        skipped = []
        for position, row in enumerate(rows):
            source = f"{parameter_name}[{position}]"
            function_name = row.get("func") if isinstance(row, dict) else None
            variable_name = row.get("env") if isinstance(row, dict) else None
            if not (isinstance(function_name, str) and function_name) or not (
                isinstance(variable_name, str) and variable_name
            ):
                reason = "subscription row needs both 'func' and 'env'"
                logger.warning(f"Skipping subscription {source}: {reason}")
                skipped.append(UpdateOutcome.skipped_entry(source, reason))
                continue
            subscriptions.append(Subscription(function_name, variable_name, source=source))

        return SubscriptionSet(parameter_name, tuple(subscriptions), tuple(skipped))
