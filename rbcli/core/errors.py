"""Exit codes for CLI commands.

Every command maps its failure to one of these codes so scripts calling
``rbcli`` can tell a bad invocation from an old server or a network outage.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes. Values are part of the CLI contract.

    - 0: Success
    - 1: User error (conflicting flags, invalid spec, unknown source)
    - 2: Environment error (server too old, missing configuration)
    - 4: Network error (server unreachable, request rejected)
    - 5: I/O error (spec file unreadable)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
