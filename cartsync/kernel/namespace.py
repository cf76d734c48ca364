# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
Namespace Helper — Key isolation between queue scopes.

All Redis keys are namespaced: cartsync:{namespace}:{name}
so several devices or users can share one Redis without clobbering
each other's offline queue.
"""

from __future__ import annotations


def get_key(namespace: str, name: str) -> str:
    """
    Build a namespaced storage key.

    Examples:
        get_key("default", "offlineOperations") -> "cartsync:default:offlineOperations"
        get_key("user_42", "offlineOperations") -> "cartsync:user_42:offlineOperations"
    """
    return f"cartsync:{namespace}:{name}"
