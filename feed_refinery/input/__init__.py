from .json_parser import parse_feed_json, parse_iso8601

__all__ = ["parse_feed_json", "parse_iso8601"]
