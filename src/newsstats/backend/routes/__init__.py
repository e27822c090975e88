"""Blueprints for the statistics API."""
