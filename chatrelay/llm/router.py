"""
Provider Router - ordered fallback across provider candidates.

A candidate is one (provider, model) pair. The router walks the candidate
list in declared order and returns the first completion. After each failure
it asks decide() what to do, which depends only on the error kind:

    NOT_FOUND, RATE_LIMITED, UNKNOWN  -> try the next candidate
    UNAUTHORIZED, FORBIDDEN           -> stop, credentials will not heal

Candidates are tried strictly one after another with no delay in between.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from chatrelay.core.exceptions import ProviderAuthenticationError, ProviderUnavailableError
from chatrelay.core.logging_config import get_logger
from chatrelay.llm.errors import ErrorKind, ProviderError
from chatrelay.llm.providers import BaseProvider, Turn

logger = get_logger(__name__)


class FallbackAction(str, Enum):
    CONTINUE = "continue"
    ABORT = "abort"


_ABORT_KINDS = {ErrorKind.UNAUTHORIZED, ErrorKind.FORBIDDEN}


def decide(kind: ErrorKind) -> FallbackAction:
    """Abort on credential failures, move on for everything else."""
    if kind in _ABORT_KINDS:
        return FallbackAction.ABORT
    return FallbackAction.CONTINUE


@dataclass(frozen=True)
class Candidate:
    """One (provider, model) pair the router may attempt."""
    provider: BaseProvider
    model: str

    @property
    def label(self) -> str:
        return f"{self.provider.name}/{self.model}"


def expand_candidates(providers: Iterable[BaseProvider]) -> List[Candidate]:
    """One candidate per model, providers in the given order."""
    return [
        Candidate(provider=provider, model=model)
        for provider in providers
        for model in provider.models
    ]


class ProviderRouter:
    """
    Returns the first successful completion from an ordered candidate list.

    Example:
        >>> router = ProviderRouter.from_providers([openai_provider, gemini_provider])
        >>> router.generate([{"role": "system", "content": "..."},
        ...                  {"role": "user", "content": "Hi"}])
        'Hello! How can I help you today?'
    """

    def __init__(self, candidates: Sequence[Candidate]):
        self.candidates: List[Candidate] = list(candidates)
        logger.info(
            f"ProviderRouter initialized with {len(self.candidates)} candidates: "
            f"{[c.label for c in self.candidates]}"
        )

    @classmethod
    def from_providers(cls, providers: Iterable[BaseProvider]) -> "ProviderRouter":
        return cls(expand_candidates(providers))

    @property
    def provider_names(self) -> List[str]:
        """Distinct vendor names in routing order."""
        names: List[str] = []
        for candidate in self.candidates:
            if candidate.provider.name not in names:
                names.append(candidate.provider.name)
        return names

    def ordered_candidates(self, preferred_model: Optional[str] = None) -> List[Candidate]:
        """
        Candidate order for one request.

        Candidates serving ``preferred_model`` move to the front. When no
        candidate serves it, an OpenAI candidate for that model is tried
        first if the OpenAI vendor is configured.
        """
        if not preferred_model:
            return list(self.candidates)

        preferred = [c for c in self.candidates if c.model == preferred_model]
        rest = [c for c in self.candidates if c.model != preferred_model]
        if preferred:
            return preferred + rest

        openai = next((c.provider for c in self.candidates if c.provider.name == "openai"), None)
        if openai is not None:
            return [Candidate(provider=openai, model=preferred_model)] + rest

        logger.warning(f"Requested model '{preferred_model}' is not served by any provider, ignoring")
        return rest

    def generate(self, turns: Sequence[Turn], preferred_model: Optional[str] = None) -> str:
        """
        Try candidates in order and return the first completion.

        Args:
            turns: The completion request, system turn first
            preferred_model: Optional model to try before the declared order

        Returns:
            Completion text from the first candidate that succeeded

        Raises:
            ProviderAuthenticationError: A candidate failed with 401/403
            ProviderUnavailableError: Every candidate failed (or none exist)
        """
        candidates = self.ordered_candidates(preferred_model)
        if not candidates:
            logger.critical("No AI providers configured")
            raise ProviderUnavailableError("No AI providers configured")

        last_error: Optional[ProviderError] = None

        for attempt, candidate in enumerate(candidates, start=1):
            if attempt > 1:
                logger.info(f"Attempt {attempt}: falling back to {candidate.label}")

            try:
                text = candidate.provider.generate(turns, model=candidate.model)
            except Exception as e:
                error = ProviderError.from_exception(
                    e, provider=candidate.provider.name, model=candidate.model
                )
            else:
                if attempt > 1:
                    logger.info(f"Completion served by {candidate.label} after {attempt} attempts")
                return text

            last_error = error

            if decide(error.kind) is FallbackAction.ABORT:
                logger.error(f"Credential failure, aborting provider fallback: {error}")
                raise ProviderAuthenticationError(
                    last_error=error, attempts=attempt
                ) from error

            if error.kind in (ErrorKind.RATE_LIMITED, ErrorKind.NOT_FOUND):
                logger.warning(f"Provider unavailable, trying next: {error}")
            else:
                logger.error(f"Provider failed, trying next: {error}")

        logger.critical(f"All {len(candidates)} provider candidates failed. Last error: {last_error}")
        raise ProviderUnavailableError(
            last_error=last_error, attempts=len(candidates)
        ) from last_error
