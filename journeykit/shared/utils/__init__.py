"""Shared utilities (datetime, script text encoding, bounded concurrency)."""
