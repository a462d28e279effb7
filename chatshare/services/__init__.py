"""
Services module for ChatShare

This module exports the parser registry and its provider contract.
"""

from chatshare.services.parser_registry import ChatParser, ParserRegistry, parser_registry

__all__ = ["ChatParser", "ParserRegistry", "parser_registry"]
