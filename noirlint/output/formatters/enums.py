from enum import Enum


class OutputFormat(str, Enum):
    TEXT = "text"
    TREE = "tree"
    JSON = "json"
    CSV = "csv"
