from .table_set import TableSet, page_offset

__all__ = ["TableSet", "page_offset"]
