"""
Database package for AntiToxicity.

Persists the sanction history in SQLite (aiosqlite) so repeat-offender
escalation survives restarts.
"""
