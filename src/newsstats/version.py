"""Version information for :mod:`newsstats`."""

VERSION = "0.1.0"
