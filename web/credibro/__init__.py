"""Credibro referral-lead backend."""
