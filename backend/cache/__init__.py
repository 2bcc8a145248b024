"""Disk caches for rendered output."""
