"""Export packaging for generated collections."""

from .archive import archive_filename, build_metadata, item_filename, write_archive, write_directory

__all__ = ["archive_filename", "build_metadata", "item_filename", "write_archive", "write_directory"]
