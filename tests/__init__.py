"""Tests for the intake service."""
