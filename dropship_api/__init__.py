"""Dropship catalog and authentication API."""
