"""
Process execution backends
"""
from .runner import SubprocessRunner, PopenProcessHandle

__all__ = ["SubprocessRunner", "PopenProcessHandle"]
