"""
reposx: a small package-manager client.

Fetches a remote package index, installs per-architecture tarballs into a
per-user store and reports installed package paths for shells.
"""

__version__ = "0.1.0"
