"""
Storefront authorization engine.

Resolves a principal's effective permissions from direct grants and roles,
matches them against a requested resource/action and evaluates per-permission
runtime conditions.
"""
