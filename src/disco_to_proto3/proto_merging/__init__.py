"""Proto merging exports."""

from .proto_merger import METHOD_SIGNATURE_OPTION, merge_proto_files

__all__ = ["METHOD_SIGNATURE_OPTION", "merge_proto_files"]
