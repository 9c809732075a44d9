"""Clang compile database generation for Unreal Engine projects."""

__version__ = "0.2.0"
