"""Proto parsing exports."""

from .proto_parser import OptionValueError, ProtoParseError, parse_option_value, parse_proto

__all__ = ["OptionValueError", "ProtoParseError", "parse_option_value", "parse_proto"]
