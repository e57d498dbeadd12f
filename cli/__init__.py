"""CLI package for Shelfmate"""
from .main import cli

__all__ = ['cli']
