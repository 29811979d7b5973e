from unittest import mock

from botocore.exceptions import WaiterError

from parameter_subscriber.models import OutcomeStatus, Subscription
from parameter_subscriber.updater import apply_subscription, update_function_environment

from conftest import client_error


class TestUpdateFunctionEnvironment:
    """Tests for update_function_environment function."""

    def test_merges_single_variable(self, mock_lambda, functions):
        changed = update_function_environment(mock_lambda, "apiFn", "HOST", "10.0.0.5")

        assert changed is True
        assert functions["apiFn"] == {"HOST": "10.0.0.5", "LOG_LEVEL": "INFO"}

    def test_adds_variable_to_function_without_environment(self):
        client = mock.Mock()
        client.get_function_configuration.return_value = {"FunctionName": "bare"}

        update_function_environment(client, "bare", "HOST", "h")

        client.update_function_configuration.assert_called_once_with(
            FunctionName="bare",
            Environment={"Variables": {"HOST": "h"}},
        )

    def test_passes_revision_id(self, mock_lambda):
        update_function_environment(mock_lambda, "apiFn", "HOST", "10.0.0.5")

        kwargs = mock_lambda.update_function_configuration.call_args.kwargs
        assert kwargs["RevisionId"] == "rev-1"

    def test_current_value_is_not_rewritten(self, mock_lambda):
        changed = update_function_environment(mock_lambda, "apiFn", "HOST", "10.0.0.1")

        assert changed is False
        mock_lambda.update_function_configuration.assert_not_called()

    def test_empty_value_is_written(self, mock_lambda, functions):
        update_function_environment(mock_lambda, "reportFn", "HOST", "")
        assert functions["reportFn"] == {"HOST": ""}


class TestApplySubscription:
    """Tests for apply_subscription function."""

    def test_updated_outcome(self, mock_lambda):
        outcome = apply_subscription(mock_lambda, Subscription("apiFn", "HOST"), "10.0.0.5")

        assert outcome.status is OutcomeStatus.UPDATED
        assert outcome.target_function == "apiFn"
        assert outcome.detail == "Lambda Function [apiFn] has been updated."

    def test_unchanged_outcome_is_skipped(self, mock_lambda):
        outcome = apply_subscription(mock_lambda, Subscription("apiFn", "HOST"), "10.0.0.1")
        assert outcome.status is OutcomeStatus.SKIPPED

    def test_missing_function_is_failed_outcome(self, mock_lambda):
        outcome = apply_subscription(mock_lambda, Subscription("ghostFn", "HOST"), "v")

        assert outcome.status is OutcomeStatus.FAILED
        assert "ResourceNotFoundException" in outcome.detail

    def test_rejected_write_is_failed_outcome(self):
        client = mock.Mock()
        client.get_function_configuration.return_value = {"Environment": {"Variables": {}}}
        client.update_function_configuration.side_effect = client_error(
            "ResourceConflictException", "UpdateFunctionConfiguration"
        )

        outcome = apply_subscription(client, Subscription("busyFn", "HOST"), "v")

        assert outcome.status is OutcomeStatus.FAILED
        assert outcome.target_function == "busyFn"

    def test_waits_for_update_when_asked(self, mock_lambda):
        outcome = apply_subscription(mock_lambda, Subscription("apiFn", "HOST"), "x", wait=True)

        assert outcome.status is OutcomeStatus.UPDATED
        mock_lambda.get_waiter.assert_called_once_with("function_updated")
        mock_lambda.get_waiter.return_value.wait.assert_called_once_with(FunctionName="apiFn")

    def test_does_not_wait_by_default(self, mock_lambda):
        apply_subscription(mock_lambda, Subscription("apiFn", "HOST"), "x")
        mock_lambda.get_waiter.assert_not_called()

    def test_does_not_wait_when_value_unchanged(self, mock_lambda):
        apply_subscription(mock_lambda, Subscription("apiFn", "HOST"), "10.0.0.1", wait=True)
        mock_lambda.get_waiter.assert_not_called()

    def test_waiter_timeout_after_write_is_still_updated(self, mock_lambda, functions):
        mock_lambda.get_waiter.return_value.wait.side_effect = WaiterError(
            name="FunctionUpdated",
            reason="Max attempts exceeded",
            last_response={},
        )

        outcome = apply_subscription(mock_lambda, Subscription("apiFn", "HOST"), "10.0.0.5", wait=True)

        assert outcome.status is OutcomeStatus.UPDATED
        assert "Warning" in outcome.detail
        assert "Max attempts exceeded" in outcome.detail
        assert functions["apiFn"]["HOST"] == "10.0.0.5"
