"""Seafile upload/download proxy."""
