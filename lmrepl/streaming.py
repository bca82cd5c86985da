"""
Draining a provider's reply stream onto the terminal.

ResponseStreamConsumer is the consumer half of the single-producer /
single-consumer pair described in llm.py. For each StreamToken it:

  1. prints the text right away (each fragment exactly once, in arrival order,
     with no buffering beyond the print itself),
  2. appends the text to the reply being accumulated,
  3. adds the token's count to the running total.

The loop ends in one of two ways:

  - A token carrying EndOfStream, or the iterator simply running out: the
    reply is complete and a StreamResult is returned.
  - A token carrying any other error: StreamInterruptedError is raised. It
    keeps the partial text and token count, because the user has already
    seen that text on screen.

Throughput:
  tokens/s is computed against max(1s, elapsed). Replies that finish in a
  fraction of a second would otherwise report absurd rates (50 tokens in
  0.1s is not "500 tokens/s" in any useful sense).
"""

import time
from dataclasses import dataclass

from rich.console import Console

from .console import console as default_console
from .llm import EndOfStream, LLMError, StreamToken

MIN_RATE_WINDOW_SECONDS = 1.0


class StreamInterruptedError(LLMError):
    """The reply stream failed part-way; carries what arrived before the failure."""

    def __init__(self, error: BaseException, partial_text: str = "", token_count: int = 0):
        super().__init__(f"response stream error: {error}")
        self.error = error
        self.partial_text = partial_text
        self.token_count = token_count


@dataclass
class StreamResult:
    text: str
    token_count: int
    elapsed: float
    tokens_per_second: float

    def metrics_line(self) -> str:
        return (
            f"[{self.tokens_per_second:.2f} tokens/s, {self.elapsed:.2f}s, "
            f"{self.token_count} tokens]"
        )


def tokens_per_second(tokens: int, elapsed: float) -> float:
    return tokens / max(MIN_RATE_WINDOW_SECONDS, elapsed)


class ResponseStreamConsumer:
    def __init__(self, console: Console | None = None):
        self.console = console or default_console

    def _write(self, text: str):
        # Raw text: model output may contain [brackets] Rich would read as markup
        self.console.print(text, end="", markup=False, highlight=False, soft_wrap=True)

    def consume(self, stream, start_time: float) -> StreamResult:
        """Print and accumulate `stream` until it ends; see module docstring."""
        parts: list[str] = []
        tokens = 0

        token: StreamToken
        for token in stream:
            if token.error is not None:
                if isinstance(token.error, EndOfStream):
                    break
                self.console.print()
                raise StreamInterruptedError(token.error, "".join(parts), tokens)
            if token.text:
                self._write(token.text)
                parts.append(token.text)
            tokens += token.token_count

        elapsed = time.time() - start_time
        result = StreamResult(
            text="".join(parts),
            token_count=tokens,
            elapsed=elapsed,
            tokens_per_second=tokens_per_second(tokens, elapsed),
        )
        self.console.print()
        self.console.print(result.metrics_line(), style="dim", markup=False, highlight=False)
        return result
