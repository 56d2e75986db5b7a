"""Error types raised by the game logic and translated at the API boundary."""
from __future__ import annotations


class GameError(Exception):
    """Base class for errors reported to the client as ``{success: false}``."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailedError(GameError):
    """Malformed input such as an invalid player name or nickname."""

    status_code = 400


class NotFoundError(GameError):
    """Unknown player, monster, species or battle id."""

    status_code = 404


class BattleConcludedError(GameError):
    """An action was submitted to a battle that is no longer in progress."""

    status_code = 409

    def __init__(self, message: str = "バトルはすでに終了しています") -> None:
        super().__init__(message)


class NoUsableMonsterError(GameError):
    """The player has no monster with HP left to fight with."""

    status_code = 409

    def __init__(self, message: str = "たたかえるモンスターがいません") -> None:
        super().__init__(message)


class RandomnessUnavailableError(GameError):
    """A cryptographically strong random source is required but missing."""

    status_code = 500

    def __init__(self, message: str = "安全な乱数源が利用できません") -> None:
        super().__init__(message)
