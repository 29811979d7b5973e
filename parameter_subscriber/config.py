"""
Runtime configuration for the parameter subscriber Lambda.

Environment Variables:
----------------------
AWS_REGION                (optional)  - Region for boto3 clients.
LOGGING_LEVEL             (optional)  - Log level for the LambdaLogger logger.
SUBSCRIPTION_STRATEGY     (optional)  - "registry" or "table".
SUBSCRIBER_NAMESPACE      (optional)  - Path prefix of registry subscriptions.
PARAMETER_SUBSCRIPTIONS   (optional)  - Embedded subscription table (JSON).
MAX_SUBSCRIPTION_PAGES    (optional)  - Upper bound on registry pages read.
WAIT_FOR_FUNCTION_UPDATE  (optional)  - Wait for each function update to settle.
"""

import logging
import os

STRATEGY_REGISTRY = "registry"
STRATEGY_TABLE = "table"


def get_env(name, required=False, default=None):
    """
    Retrieve an environment variable.

    Parameters:
    -----------
    name : str
        Name of the environment variable.
    required : bool
        If True, raises an error when the variable is missing.
    default : str | None
        Default value when not set.

    Returns:
    --------
    str
        Environment variable value.

    Raises:
    -------
    RuntimeError
        If required variable is missing.
    """
    value = os.getenv(name, default)
    if required and (value is None or value.strip() == ""):
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


def get_bool_env(name, default=False):
    value = get_env(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def get_int_env(name, default):
    """Positive integer from the environment; `default` if unset or unusable."""
    value = get_env(name)
    if value is None or value.strip() == "":
        return default
    try:
        number = int(value)
    except ValueError:
        logger.warning(f"{name} must be an integer, got {value!r}; using {default}")
        return default
    if number < 1:
        logger.warning(f"{name} must be positive, got {number}; using {default}")
        return default
    return number


# =============================================================================
# LOGGING SETUP
# =============================================================================

logger = logging.getLogger("LambdaLogger")
logging_level = get_env("LOGGING_LEVEL", default="INFO").upper()
logging.basicConfig(level=logging_level)
logger.setLevel(logging_level)

AWS_REGION = get_env("AWS_REGION", default="eu-west-2")
SUBSCRIBER_NAMESPACE = get_env("SUBSCRIBER_NAMESPACE", default="/subscriber")
PARAMETER_SUBSCRIPTIONS = get_env("PARAMETER_SUBSCRIPTIONS")
SUBSCRIPTION_STRATEGY = get_env(
    "SUBSCRIPTION_STRATEGY",
    default=STRATEGY_TABLE if PARAMETER_SUBSCRIPTIONS else STRATEGY_REGISTRY,
).strip().lower()
MAX_SUBSCRIPTION_PAGES = get_int_env("MAX_SUBSCRIPTION_PAGES", 100)
WAIT_FOR_FUNCTION_UPDATE = get_bool_env("WAIT_FOR_FUNCTION_UPDATE", default=True)
