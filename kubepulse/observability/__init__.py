"""Structured logging and Prometheus metrics for KubePulse."""
