"""Task statuses and node types known to a Boardtask installation.

The built-in entries mirror the system rows seeded into every database; a YAML
file can add organization-specific ones or rename the defaults for display.
"""
