"""
Applies a parameter value to one Lambda function's environment.
"""

from botocore.exceptions import WaiterError

from parameter_subscriber.config import logger
from parameter_subscriber.models import UpdateOutcome


def update_function_environment(lambda_client, function_name, variable_name, value):
    """
    Set one environment variable on a Lambda function, keeping all others.

    Args:
        lambda_client (boto3.client("lambda")): Lambda client
        function_name (str): Function name or ARN
        variable_name (str): Environment variable to set
        value (str): New value

    Returns:
        bool: True if the configuration was written, False if the variable
        already held `value`

    Raises:
        ClientError: If the function does not exist or the write is rejected
    """
    config = lambda_client.get_function_configuration(FunctionName=function_name)
    variables = dict((config.get("Environment") or {}).get("Variables") or {})

    if variable_name in variables and variables[variable_name] == value:
        logger.info(f"Lambda Function [{function_name}] {variable_name} is already current")
        return False

    variables[variable_name] = value
    logger.debug(f"Writing variables {sorted(variables)} to [{function_name}]")

    kwargs = {
        "FunctionName": function_name,
        "Environment": {"Variables": variables},
    }
    if config.get("RevisionId"):
        kwargs["RevisionId"] = config["RevisionId"]

    lambda_client.update_function_configuration(**kwargs)
    return True


def wait_for_function_update(lambda_client, function_name):
    """Block until the last configuration update of a function has been applied."""
    lambda_client.get_waiter("function_updated").wait(FunctionName=function_name)


def apply_subscription(lambda_client, subscription, value, wait=False):
    """
    Apply `value` to one subscription, capturing any failure as an outcome.

    With `wait`, the function is polled until the update settles. A waiter
    failure after a successful write still counts as Updated since the new
    value was accepted.
    """
    logger.info(
        f"Updating Lambda Function [{subscription.target_function}] "
        f"environment variable [{subscription.variable_name}]."
    )
    try:
        changed = update_function_environment(
            lambda_client,
            subscription.target_function,
            subscription.variable_name,
            value,
        )
    except Exception as error:
        logger.error(f"Failed to update Lambda Function [{subscription.target_function}]: {error}")
        return UpdateOutcome.failed(subscription, error)

    if not changed:
        return UpdateOutcome.unchanged(subscription)

    if wait:
        try:
            wait_for_function_update(lambda_client, subscription.target_function)
        except WaiterError as error:
            warning = f"update written but not confirmed: {error}"
            logger.warning(f"Lambda Function [{subscription.target_function}] {warning}")
            return UpdateOutcome.updated(subscription, warning=warning)

    return UpdateOutcome.updated(subscription)
