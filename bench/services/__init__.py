"""Collaborators built on the data store: reaper, email, newsletter, storage."""
