from localstack_utils.version import __version__

__all__ = ["__version__"]
