"""Closed set of user roles used by RBAC checks."""

import enum


class Role(str, enum.Enum):
    """User role. Values are the wire and storage representation."""

    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    VIEWER = "VIEWER"
