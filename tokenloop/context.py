#  Copyright (c) 2025, Anemll  All rights reserved.
#
#  Use of this source code is governed by a MIT license that can be
#  found in the LICENSE.txt file or at https://opensource.org/license/mit

from typing import List

# Throwaway batch evaluated once so the engine can size its buffers
WARMUP_TOKENS = [0, 1, 2, 3]


class RepetitionWindow:
    """Fixed-capacity history of the most recent tokens.

    Starts filled with the sentinel token 0. ``push`` evicts the oldest
    entry, so ``len(window)`` never changes after construction.
    """

    def __init__(self, capacity: int, fill: int = 0):
        if capacity < 0:
            raise ValueError(f"repeat_last_n must be >= 0, got {capacity}")
        self.capacity = capacity
        self._tokens = [fill] * capacity

    def push(self, token: int):
        if not self.capacity:
            return
        del self._tokens[0]
        self._tokens.append(token)

    def tokens(self) -> List[int]:
        return self._tokens

    def __len__(self):
        return len(self._tokens)

    def __iter__(self):
        return iter(self._tokens)


class ContextWindowTracker:
    """Owns the running position in the engine context and the repetition window."""

    def __init__(self, engine, repeat_last_n: int, n_threads: int = 1):
        self.engine = engine
        self.n_threads = n_threads
        self.n_past = 0
        self.window = RepetitionWindow(repeat_last_n)

    def warmup(self):
        """Evaluate a throwaway batch at position 0 without moving the cursor."""
        self.engine.evaluate(WARMUP_TOKENS, 0, self.n_threads)

    def submit(self, tokens: List[int]) -> int:
        """Evaluate ``tokens`` at the running position and advance it.

        ``EvalError`` from the engine propagates unchanged and the position is
        left where it was.
        """
        if not tokens:
            return self.n_past
        self.engine.evaluate(tokens, self.n_past, self.n_threads)
        self.n_past += len(tokens)
        return self.n_past

    def record(self, token: int):
        self.window.push(token)

    def render_window(self) -> str:
        return "".join(self.engine.token_to_str(t) for t in self.window)
