"""Ranged read sources."""
