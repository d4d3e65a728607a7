"""Document store and markdown parsing utilities."""

from .parser import extract_links, parse_bracket_link, parse_list_item, split_header
from .store import DocumentStore, FileVault

__all__ = [
    "DocumentStore",
    "FileVault",
    "extract_links",
    "parse_bracket_link",
    "parse_list_item",
    "split_header",
]
