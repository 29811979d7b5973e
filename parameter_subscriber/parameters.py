"""
Parameter Store reads used by a propagation cycle.
"""

from botocore.exceptions import ClientError

from parameter_subscriber.config import logger
from parameter_subscriber.exceptions import ResolutionError

# Error codes that mean "there is no value we are allowed to see".
EMPTY_VALUE_ERROR_CODES = (
    "ParameterNotFound",
    "ParameterVersionNotFound",
    "AccessDeniedException",
)


def fetch_parameter_value(ssm_client, name):
    """
    Read the current value of a parameter.

    Parameters:
    -----------
    ssm_client : boto3.client("ssm")
        SSM client.
    name : str
        Parameter name.

    Returns:
    --------
    str
        The parameter value, or "" when the parameter is missing or the
        read is denied.

    Raises:
    -------
    ClientError
        For any other store failure (throttling, internal errors).
    """
    try:
        response = ssm_client.get_parameter(Name=name, WithDecryption=True)
    except ClientError as error:
        code = error.response.get("Error", {}).get("Code")
        if code in EMPTY_VALUE_ERROR_CODES:
            logger.warning(f"No readable value for {name} ({code}); propagating empty value")
            return ""
        raise

    return (response.get("Parameter") or {}).get("Value") or ""


def fetch_parameters_by_path(ssm_client, path, max_pages=100):
    """
    Fetch all parameters under a given SSM path using pagination.

    Parameters:
    -----------
    ssm_client : boto3.client("ssm")
        SSM client.
    path : str
        Parameter path prefix.
    max_pages : int
        Maximum number of pages to read before giving up.

    Returns:
    --------
    list[dict]
        List of parameter objects from SSM, in the order returned.

    Raises:
    -------
    ResolutionError
        If the store repeats a continuation token or returns more than
        `max_pages` pages.
    """
    params = []
    next_token = None
    pages = 0

    while True:
        if pages >= max_pages:
            raise ResolutionError(
                f"Listing {path} did not finish within {max_pages} pages"
            )

        kwargs = {
            "Path": path,
            "Recursive": True,
            "WithDecryption": True,
        }
        if next_token:
            kwargs["NextToken"] = next_token

        resp = ssm_client.get_parameters_by_path(**kwargs)
        pages += 1
        params.extend(resp.get("Parameters") or [])

        token = resp.get("NextToken")
        if not token:
            break
        if token == next_token:
            raise ResolutionError(f"Listing {path} returned the same NextToken twice")
        next_token = token

    logger.debug(f"Read {len(params)} parameters under {path} in {pages} page(s)")
    return params
