"""Outfit-inspiration feed ranking service."""
