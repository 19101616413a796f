"""Tests for jwskit."""
