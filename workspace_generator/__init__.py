"""Workspace generator -- scaffolds web application workspaces.

Compiles a declarative workspace configuration into file operations,
executes them with rollback on failure, and optionally provisions backend
projects per environment through the backend's CLI.
"""

__version__ = "0.4.0"
