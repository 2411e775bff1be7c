#  Copyright (c) 2025, Anemll  All rights reserved.
#
#  Use of this source code is governed by a MIT license that can be
#  found in the LICENSE.txt file or at https://opensource.org/license/mit

from abc import ABC, abstractmethod
from typing import List, Sequence

import numpy as np


class BaseEngine(ABC):
    """Inference backend consumed by the generation loop.

    Implementations tokenize text, evaluate batches at an explicit position
    in their context, expose the logits of the last evaluated position and
    sample the next token from them.
    """

    @abstractmethod
    def tokenize(self, text: str, add_bos: bool) -> List[int]:
        pass

    @abstractmethod
    def evaluate(self, tokens: Sequence[int], n_past: int, n_threads: int) -> None:
        """Evaluate ``tokens`` starting at position ``n_past``.

        Raises:
            EvalError: if the backend fails.
        """

    @abstractmethod
    def get_logits(self) -> np.ndarray:
        """Mutable logits of the last evaluated position."""

    @abstractmethod
    def sample(self, last_n_tokens: Sequence[int], top_k: int, top_p: float,
               temp: float, repeat_penalty: float) -> int:
        pass

    @abstractmethod
    def token_to_str(self, token: int) -> str:
        pass

    @property
    @abstractmethod
    def eos_token(self) -> int:
        pass

    @property
    @abstractmethod
    def n_ctx(self) -> int:
        pass

    def print_timings(self):
        pass
