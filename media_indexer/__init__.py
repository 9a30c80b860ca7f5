"Media library indexer: streaming scanner, ignore rules and resolver dispatch."

from importlib import metadata

from .indexer import IndexerError, LibraryIndexer, ResolvedItem
from .scanner import LibraryScanner

__all__ = ["IndexerError", "LibraryIndexer", "LibraryScanner", "ResolvedItem", "__version__"]


def __getattr__(name: str) -> str:
    if name == "__version__":
        try:
            return metadata.version("media-indexer")
        except metadata.PackageNotFoundError:  # not installed, e.g. running from a checkout
            return "0.0.0"
    raise AttributeError(name)
