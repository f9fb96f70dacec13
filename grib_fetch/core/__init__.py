"""
Core transfer engine.

This package contains the primary logic: parsing the .idx inventory,
selecting and merging byte ranges, and the `TransferOrchestrator` that
fetches those ranges concurrently into a single file.
"""
