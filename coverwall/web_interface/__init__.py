"""Shared web-layer helpers: error codes, error handling decorator, validators, response helpers."""
