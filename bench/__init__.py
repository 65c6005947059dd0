"""
Sulphuric Bench backend core.

Super-admin session handling (credential registry, token issuing,
session store, verification, profile resolution) plus the collaborators
that sit on top of it: newsletter, email dispatch and object storage.
"""

__version__ = "1.0.0"
