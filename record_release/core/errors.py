"""Exit codes for the record-release CLI.

A failed step surfaces one of these as its process exit status, so workflow
authors can tell a bad input apart from a ledger outage or a missing session.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes.

    These values are part of the CLI contract and should remain stable:
    - 0: Success
    - 1: User error (missing or invalid inputs)
    - 2: Ledger API error (non-2xx response, unreachable endpoint)
    - 3: Session error (no session to resume)
    - 4: Secret error (private key or ciphertext rejected)
    - 5: I/O error (blob storage, files, command files)
    """

    OK = 0
    USER_ERROR = 1
    API_ERROR = 2
    SESSION_ERROR = 3
    SECRET_ERROR = 4
    IO_ERROR = 5
