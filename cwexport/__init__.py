"""Scrape jobs for CloudWatch metrics and tagged resources."""

__version__ = "0.1.0"