"""Propagates SSM Parameter Store changes into subscribed Lambda functions."""

__version__ = "0.2.0"
