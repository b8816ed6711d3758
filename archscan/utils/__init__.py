"""Utility helpers for the scanner."""

from .fileio import read_graph_file, read_yaml_file, write_text_file

__all__ = [
    "read_graph_file",
    "read_yaml_file",
    "write_text_file",
]
