"""In-memory file trees with link resolution, globbing, layer merging and a metadata index."""

__version__ = "0.1.0"

__all__ = [
    "nodes",
    "link_strategy",
    "glob_parser",
    "store",
    "index",
    "resolver",
    "glob",
    "filetree",
]