"""Filesystem utilities for podcaddy."""
