"""
Permission resolution feature module.

Implements role-based access control with per-permission runtime conditions
(ownership, status and custom attribute rules) for the storefront resources.
"""
