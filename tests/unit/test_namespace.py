# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.
"""Unit tests for namespace helper."""

from cartsync.kernel.namespace import get_key


class TestNamespace:
    def test_get_key(self):
        assert get_key("default", "offlineOperations") == "cartsync:default:offlineOperations"

    def test_different_namespaces_different_keys(self):
        assert get_key("user_a", "offlineOperations") != get_key("user_b", "offlineOperations")
