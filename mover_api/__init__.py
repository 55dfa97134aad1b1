"""Mover API backend package.

Hosts the notification lifecycle engine of the moving-company backend: grouped
multi-recipient notifications, per-recipient read tracking, lifecycle ageing
and the reconciliation of cached read flags.
"""
