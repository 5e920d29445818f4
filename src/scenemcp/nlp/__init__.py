"""
SceneMCP natural language command parsing
"""

from .parser import ParsedCommand, Rule, RULES, parse, command_to_object, parse_color

__all__ = ['ParsedCommand', 'Rule', 'RULES', 'parse', 'command_to_object', 'parse_color']
