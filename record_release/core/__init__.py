"""Core types shared by every layer."""

from .config import ActionInputs, GithubContext
from .errors import ErrorCode
from .result import Err, Ok, Result

__all__ = [
    # config
    "ActionInputs",
    "GithubContext",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
]
