#  Copyright (c) 2025, Anemll  All rights reserved.
#
#  Use of this source code is governed by a MIT license that can be
#  found in the LICENSE.txt file or at https://opensource.org/license/mit

from typing import List


class InputMultiplexer:
    """Pending-token queue shared by the prompt and live user input.

    Tokens are never removed from the queue; ``consumed`` counts how many of
    them were already handed to the engine. While anything is pending the
    driver forwards it in batches and does not sample.
    """

    def __init__(self, tracker, tokens=None):
        self.tracker = tracker
        self.queue: List[int] = list(tokens or [])
        self.consumed = 0

    @property
    def drained(self) -> bool:
        return self.consumed >= len(self.queue)

    @property
    def pending(self) -> int:
        return len(self.queue) - self.consumed

    def extend(self, tokens):
        self.queue.extend(tokens)

    def skip_to_end(self):
        """Mark every queued token as consumed."""
        self.consumed = len(self.queue)

    def forward_batch(self, n_batch: int) -> List[int]:
        """Take up to ``n_batch`` pending tokens, recording each into the window."""
        batch = []
        while self.consumed < len(self.queue):
            token = self.queue[self.consumed]
            batch.append(token)
            self.tracker.record(token)
            self.consumed += 1
            if len(batch) >= n_batch:
                break
        return batch
