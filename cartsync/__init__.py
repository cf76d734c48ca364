# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""CartSync — retry and offline-operation sync for the shopping list app."""

__version__ = "0.1.0"
