"""Input validation schemas for player names, nicknames and battle actions.

Schemas are built once at import time and expose a pure ``validate`` method
that never raises for bad input; it returns a :class:`ValidationResult`
instead. :func:`require` turns a failed result into an exception for the
API layer.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, Tuple, TypeVar

from .errors import ValidationFailedError

T = TypeVar("T")

# ASCII letters and digits, hiragana, katakana (incl. ー), CJK kanji, hyphen, whitespace.
ALLOWED_TEXT = re.compile(r"^[A-Za-z0-9\u3040-\u309F\u30A0-\u30FF\u4E00-\u9FFF\-\s]+$")
INVALID_CHARACTERS = "使用できない文字が含まれています"


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    """Outcome of a validation: either ``value`` or ``error`` is set."""

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "ValidationResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "ValidationResult[T]":
        return cls(ok=False, error=error)


class TextSchema:
    """Length and character policy for a free-text field."""

    def __init__(self, label: str, min_length: int, max_length: int) -> None:
        self.label = label
        self.min_length = min_length
        self.max_length = max_length

    @property
    def length_rule(self) -> str:
        return f"{self.min_length}〜{self.max_length}文字"

    def validate(self, data: Any) -> ValidationResult[str]:
        if data is None:
            return ValidationResult.failure(
                f"{self.label}は必須です（{self.length_rule}で入力してください）"
            )
        if not isinstance(data, str):
            return ValidationResult.failure(f"{self.label}は文字列である必要があります")
        text = data.strip()
        if len(text) < self.min_length:
            return ValidationResult.failure(
                f"{self.label}が短すぎます（{self.length_rule}で入力してください）"
            )
        if len(text) > self.max_length:
            return ValidationResult.failure(
                f"{self.label}が長すぎます（{self.length_rule}で入力してください）"
            )
        if not ALLOWED_TEXT.match(text):
            return ValidationResult.failure(INVALID_CHARACTERS)
        return ValidationResult.success(text)


class BattleAction(str, Enum):
    """Player commands during a battle, keyed by their on-screen labels."""

    FIGHT = "たたかう"
    CAPTURE = "つかまえる"
    FLEE = "にげる"


class ChoiceSchema(Generic[T]):
    """Accepts exactly one of an enum's values."""

    def __init__(self, label: str, choices: Tuple[T, ...]) -> None:
        self.label = label
        self.choices = choices
        self._lookup = {choice.value: choice for choice in choices}  # type: ignore[attr-defined]

    def validate(self, data: Any) -> ValidationResult[T]:
        if isinstance(data, str) and data in self._lookup:
            return ValidationResult.success(self._lookup[data])
        allowed = "・".join(self._lookup)
        return ValidationResult.failure(f"{self.label}が無効です（{allowed}のいずれか）")


PLAYER_NAME = TextSchema("プレイヤー名", 3, 20)
NICKNAME = TextSchema("ニックネーム", 1, 20)
BATTLE_ACTION: ChoiceSchema[BattleAction] = ChoiceSchema("バトルアクション", tuple(BattleAction))


def require(result: ValidationResult[T]) -> T:
    """Return the validated value or raise :class:`ValidationFailedError`."""

    if not result.ok:
        raise ValidationFailedError(result.error or "バリデーションエラーが発生しました")
    return result.value  # type: ignore[return-value]
