"""Geofenced timekeeping package.

Organized by feature modules (workplaces, time entries, users, reports) with a
thin Flask controller layer over service/repository layers.
"""
