"""Test fixtures for pulsewatch tests.

This package provides:
- Mock local store, upload channel and session provider
- Scripted confirmer and recording notifier
- Builders for records stored by 1.0.0
"""
