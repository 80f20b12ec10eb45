"""Core Business Logic Module

Framework-free forum synchronization logic, usable from the Flask API,
the CLI, or a host application directly.

Module Structure:
    - forum/            : Forum REST API client, caches and entities
    - registration.py   : Forum account registration
    - audit.py          : Signed audit trail of directory mutations

Usage Pattern:
    These modules are NOT auto-imported to avoid Flask dependencies
    when using only the forum client library standalone.

    Import explicitly when needed:
        from forum_connector.core.forum import DirectoryClient
        from forum_connector.core.registration import register_account
"""
