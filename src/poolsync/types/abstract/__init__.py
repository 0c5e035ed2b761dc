from .chain_reader import ChainReader

__all__ = ("ChainReader",)
