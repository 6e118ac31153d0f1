"""Tests for the JNU IBS integration."""
