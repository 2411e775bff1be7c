#  Copyright (c) 2025, Anemll  All rights reserved.
#
#  Use of this source code is governed by a MIT license that can be
#  found in the LICENSE.txt file or at https://opensource.org/license/mit


class GenerationBudget:
    """Signed count of tokens the model may still sample.

    The value is never clamped: user input is charged against it too and may
    push it below zero. Anything <= 0 counts as exhausted.
    """

    def __init__(self, initial: int):
        self.initial = initial
        self.remaining = initial

    @property
    def exhausted(self) -> bool:
        return self.remaining <= 0

    def consume(self, n: int = 1):
        self.remaining -= n

    def refill(self):
        self.remaining = self.initial


class Sampler:
    """Requests one token from the engine and books it into window and budget."""

    def __init__(self, engine, tracker, budget, params):
        self.engine = engine
        self.tracker = tracker
        self.budget = budget
        self.params = params

    def sample(self) -> int:
        params = self.params
        if params.ignore_eos:
            # zeroing the eos logit only touches the last position
            assert not params.logits_all, "ignore_eos cannot be combined with logits_all"
            logits = self.engine.get_logits()
            logits[self.engine.eos_token] = 0

        token = self.engine.sample(
            self.tracker.window.tokens(),
            params.top_k,
            params.top_p,
            params.temp,
            params.repeat_penalty,
        )
        self.tracker.record(token)
        self.budget.consume(1)
        return token
