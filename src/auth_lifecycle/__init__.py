"""Credential and token lifecycle for signup, login and refresh flows."""
