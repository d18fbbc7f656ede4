"""Fallback chain primitives.

A capability (text generation, speech-to-text, vision) is served by an
ordered list of stages. Each stage returns a StageResult instead of raising,
and ``run_chain`` walks the list until one succeeds. Stages run strictly in
order and at most once per request.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Iterable, Optional, Tuple, TypeVar

from pydantic import ValidationError

from marketplace_agent.core.errors import MissingCredentialError, ProviderError
from marketplace_agent.core.logging import logger

T = TypeVar("T")


class StageOutcome(str, Enum):
    SUCCESS = "success"
    DECLINED = "declined"
    FAILED = "failed"


@dataclass(frozen=True)
class StageResult(Generic[T]):
    """Outcome of a single fallback stage."""
    outcome: StageOutcome
    stage: str
    value: Optional[T] = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is StageOutcome.SUCCESS

    @classmethod
    def success(cls, stage: str, value: T) -> "StageResult[T]":
        return cls(StageOutcome.SUCCESS, stage, value)

    @classmethod
    def declined(cls, stage: str, reason: str) -> "StageResult[T]":
        return cls(StageOutcome.DECLINED, stage, None, reason)

    @classmethod
    def failed(cls, stage: str, reason: str) -> "StageResult[T]":
        return cls(StageOutcome.FAILED, stage, None, reason)


# A stage is a name plus a callable producing a StageResult
Stage = Tuple[str, Callable[..., StageResult]]


def guard(stage: str, call: Callable[[], Optional[T]]) -> StageResult[T]:
    """Run a provider call and map its return value or error to a StageResult.

    ``None`` or an empty string means the provider declined.
    """
    try:
        value = call()
    except MissingCredentialError as e:
        logger.debug(f"[{stage}] skipped: {e}")
        return StageResult.declined(stage, str(e))
    except ProviderError as e:
        logger.warning(f"[{stage}] failed: {e}")
        return StageResult.failed(stage, str(e))
    except ValidationError as e:
        logger.warning(f"[{stage}] unexpected response shape: {e.error_count()} errors")
        return StageResult.failed(stage, "unexpected response shape")
    except Exception as e:
        # Malformed URLs, non-ASCII header values and the like: the chain must go on
        logger.exception(f"[{stage}] unexpected error: {e}")
        return StageResult.failed(stage, f"unexpected error: {e.__class__.__name__}")
    if value is None or (isinstance(value, str) and not value.strip()):
        return StageResult.declined(stage, "empty result")
    return StageResult.success(stage, value)


def run_chain(stages: Iterable[Stage], *args: Any) -> StageResult:
    """Try each stage in order; return the first success or the last miss."""
    last: Optional[StageResult] = None
    for name, stage in stages:
        result = stage(*args)
        if result.ok:
            logger.info(f"[{name}] succeeded")
            return result
        logger.info(f"[{name}] {result.outcome.value}: {result.reason}")
        last = result
    return last or StageResult.declined("none", "no stages configured")
