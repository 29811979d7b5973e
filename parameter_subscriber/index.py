#!/usr/bin/env python3
"""
Parameter Subscriber Lambda

Keeps Lambda function environment variables in sync with SSM Parameter
Store values.

Behavior:
---------
1. Receives an EventBridge "Parameter Store Change" event.
2. Ignores every operation other than Create and Update.
3. Reads the current value of the changed parameter ("" if missing).
4. Resolves the functions subscribed to the parameter, either from
   registry entries under SUBSCRIBER_NAMESPACE or from the embedded
   PARAMETER_SUBSCRIPTIONS table.
5. Sets the subscribed environment variable on every function, merging
   into the existing variables. One failing function does not stop the
   others.

Returns:
--------
{"message": "success"} once the cycle completes, {"message": "failed"} if
the value or the subscriptions could not be read.
"""

import asyncio
import json

import boto3

from parameter_subscriber import config
from parameter_subscriber.config import logger
from parameter_subscriber.models import ChangeNotification
from parameter_subscriber.parameters import fetch_parameter_value
from parameter_subscriber.resolvers import (
    EmbeddedTableResolver,
    RegistryLookupResolver,
    parse_subscription_table,
)
from parameter_subscriber.results import STATUS_FAILED, PropagationReport
from parameter_subscriber.updater import apply_subscription

# Parsed once per process; read-only afterwards.
SUBSCRIPTION_TABLE = parse_subscription_table(config.PARAMETER_SUBSCRIPTIONS)


# =============================================================================
# SUBSCRIPTION RESOLUTION
# =============================================================================

def build_resolver(ssm_client):
    """
    Create the resolver selected by SUBSCRIPTION_STRATEGY.

    Raises:
        RuntimeError: If the strategy name is not recognised
    """
    strategy = config.SUBSCRIPTION_STRATEGY
    if strategy == config.STRATEGY_REGISTRY:
        return RegistryLookupResolver(
            ssm_client,
            namespace=config.SUBSCRIBER_NAMESPACE,
            max_pages=config.MAX_SUBSCRIPTION_PAGES,
        )
    if strategy == config.STRATEGY_TABLE:
        return EmbeddedTableResolver(SUBSCRIPTION_TABLE)
    raise RuntimeError(f"Unknown SUBSCRIPTION_STRATEGY: {strategy}")


# =============================================================================
# PROPAGATION
# =============================================================================

async def apply_to_subscribers(subscriptions, value, lambda_client, wait=False):
    """
    Apply `value` to every subscription and collect the outcomes.

    Functions are updated concurrently. Subscriptions of the same function
    are applied one after the other, in order, so each read-merge-write sees
    the previous one and a duplicated variable ends with the last write.

    Returns:
        list[UpdateOutcome]: One outcome per subscription, in subscription order
    """
    by_function = {}
    for position, subscription in enumerate(subscriptions):
        by_function.setdefault(subscription.target_function, []).append((position, subscription))

    async def update_function(entries):
        results = []
        for position, subscription in entries:
            outcome = await asyncio.to_thread(
                apply_subscription, lambda_client, subscription, value, wait
            )
            results.append((position, outcome))
        return results

    batches = await asyncio.gather(*(update_function(e) for e in by_function.values()))
    ordered = sorted((pair for batch in batches for pair in batch), key=lambda pair: pair[0])
    return [outcome for _, outcome in ordered]


async def propagate(notification, resolver, ssm_client, lambda_client, wait_for_update=False):
    """
    Run one propagation cycle for a change notification.

    Args:
        notification (ChangeNotification): The change to propagate
        resolver (SubscriptionResolver): Subscription discovery strategy
        ssm_client (boto3.client("ssm")): Client used to read the new value
        lambda_client (boto3.client("lambda")): Client used to update functions
        wait_for_update (bool): Wait for each function update to settle

    Returns:
        PropagationReport: Outcomes of the cycle

    Raises:
        Exception: If the value or the subscriptions cannot be read
    """
    if not notification.triggers_propagation:
        return PropagationReport(
            notification.parameter_name, notification.operation, ignored=True
        )

    name = notification.parameter_name
    logger.info(f"Processing {notification.operation} event for parameter: {name}")

    value = await asyncio.to_thread(fetch_parameter_value, ssm_client, name)
    subscription_set = await asyncio.to_thread(resolver.resolve, name)
    logger.info(
        f"Resolved {len(subscription_set)} subscription(s) for {name} "
        f"({len(subscription_set.skipped)} skipped)"
    )

    outcomes = await apply_to_subscribers(
        subscription_set.subscriptions, value, lambda_client, wait=wait_for_update
    )
    return PropagationReport(
        name,
        notification.operation,
        outcomes=list(subscription_set.skipped) + outcomes,
    )


# =============================================================================
# LAMBDA HANDLER
# =============================================================================

def lambda_handler(event, context):
    """
    Main Lambda handler for Parameter Store change events.

    Never raises: a failure is logged and returned as {"message": "failed"}
    so the invocation is not retried against targets already updated.
    """
    logger.info("Lambda invoked by EventBridge")
    logger.debug(f"Event payload:\n{json.dumps(event, indent=4, default=str)}")

    try:
        notification = ChangeNotification.from_event(event)
        ssm_client = boto3.client("ssm", region_name=config.AWS_REGION)
        lambda_client = boto3.client("lambda", region_name=config.AWS_REGION)
        resolver = build_resolver(ssm_client)

        report = asyncio.run(
            propagate(
                notification,
                resolver,
                ssm_client,
                lambda_client,
                wait_for_update=config.WAIT_FOR_FUNCTION_UPDATE,
            )
        )
    except Exception as error:
        logger.error(f"Failed to propagate parameter change: {error}", exc_info=True)
        return {"message": STATUS_FAILED}

    report.log()
    return report.to_response()
