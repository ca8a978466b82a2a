"""
Selection Module

Numbered menus, free-text prompts and confirmations with injected input
sources (console or scripted answers).
"""

from .selector import ConsoleInput, ScriptedInput, Selector, parse_choice

__all__ = [
    'ConsoleInput',
    'ScriptedInput',
    'Selector',
    'parse_choice'
]
