"""Subway network administration: stations, lines and line topology."""
