"""Parser modules for schemabridge."""

from .model_parser import ParseResult, parse_models

__all__ = ["ParseResult", "parse_models"]
