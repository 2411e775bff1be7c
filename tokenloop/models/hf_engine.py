#  Copyright (c) 2025, Anemll  All rights reserved.
#
#  Use of this source code is governed by a MIT license that can be
#  found in the LICENSE.txt file or at https://opensource.org/license/mit

"""Hugging Face causal LM engine.

Keeps the KV cache in step with the caller's running position: evaluating
behind the cached length crops the cache first, so re-evaluating from 0
after the warmup batch starts from a clean context.
"""

import logging
import time
from typing import List, Sequence

import numpy as np
import torch
from transformers import AutoModelForCausalLM, AutoTokenizer

from ..errors import EvalError
from .base_engine import BaseEngine
from .sampling import sample_top_p_top_k

logger = logging.getLogger(__name__)

# SentencePiece word-initial marker
SPIECE_UNDERLINE = "▁"


def crop_cache(past_key_values, length):
    """Drop cached positions >= ``length``."""
    if past_key_values is None or length == 0:
        return None
    if hasattr(past_key_values, "crop"):
        past_key_values.crop(length)
        return past_key_values
    # legacy tuple-of-tuples layout: [batch, heads, seq, head_dim]
    return tuple(
        tuple(t[:, :, :length, :] for t in layer)
        for layer in past_key_values
    )


class HFEngine(BaseEngine):
    """``BaseEngine`` backed by ``transformers`` and ``torch``."""

    def __init__(self, model_path, n_ctx=512, seed=0, device="cpu"):
        load_start = time.time()
        logger.info("loading model from '%s'", model_path)
        self.tokenizer = AutoTokenizer.from_pretrained(str(model_path), trust_remote_code=True)
        self.model = AutoModelForCausalLM.from_pretrained(
            str(model_path),
            torch_dtype=torch.float32,
            trust_remote_code=True,
        ).to(device)
        self.model.eval()
        self.device = device
        self.load_time = time.time() - load_start

        max_positions = getattr(self.model.config, "max_position_embeddings", None)
        self._n_ctx = min(n_ctx, max_positions) if max_positions else n_ctx

        eos = self.tokenizer.eos_token_id
        if isinstance(eos, list):
            eos = eos[0] if eos else None
        if eos is None:
            raise ValueError(f"tokenizer for '{model_path}' has no EOS token")
        self._eos_token = int(eos)
        self._special_ids = set(self.tokenizer.all_special_ids)

        self.logits = None
        self.past_key_values = None
        self.n_cached = 0
        self._piece_cache = {}

        self.rng = np.random.default_rng(seed)
        torch.manual_seed(seed)

        logger.info(
            "model loaded in %.2fs: %s, vocab = %d, n_ctx = %d, eos = %d",
            self.load_time, self.model.__class__.__name__, len(self.tokenizer), self._n_ctx, self._eos_token,
        )

    @property
    def eos_token(self) -> int:
        return self._eos_token

    @property
    def n_ctx(self) -> int:
        return self._n_ctx

    def tokenize(self, text: str, add_bos: bool) -> List[int]:
        return list(self.tokenizer.encode(text, add_special_tokens=add_bos))

    def evaluate(self, tokens: Sequence[int], n_past: int, n_threads: int) -> None:
        if n_threads and n_threads > 0 and torch.get_num_threads() != n_threads:
            torch.set_num_threads(n_threads)

        n_tokens = len(tokens)
        if n_past + n_tokens > self._n_ctx:
            raise EvalError(
                f"context is full: n_past = {n_past}, batch = {n_tokens}, n_ctx = {self._n_ctx}",
                call="HFEngine.evaluate",
            )
        if n_past > self.n_cached:
            raise EvalError(
                f"position {n_past} is past the cached length {self.n_cached}", call="HFEngine.evaluate"
            )
        if n_past < self.n_cached:
            self.past_key_values = crop_cache(self.past_key_values, n_past)
            self.n_cached = n_past

        input_ids = torch.tensor([list(tokens)], dtype=torch.long, device=self.device)
        attention_mask = torch.ones((1, n_past + n_tokens), dtype=torch.long, device=self.device)
        try:
            with torch.no_grad():
                output = self.model(
                    input_ids=input_ids,
                    attention_mask=attention_mask,
                    past_key_values=self.past_key_values,
                    use_cache=True,
                )
        except Exception as e:
            raise EvalError(
                f"forward pass failed at n_past = {n_past}: {e}", call="HFEngine.evaluate"
            ) from e

        self.past_key_values = output.past_key_values
        self.n_cached = n_past + n_tokens

        self.logits = output.logits[0, -1].float().cpu().numpy().copy()

    def get_logits(self) -> np.ndarray:
        if self.logits is None:
            raise EvalError("no logits available before the first evaluation", call="HFEngine.get_logits")
        return self.logits

    def sample(self, last_n_tokens, top_k, top_p, temp, repeat_penalty) -> int:
        return sample_top_p_top_k(
            self.get_logits(), last_n_tokens, top_k, top_p, temp, repeat_penalty, self.rng
        )

    def token_to_str(self, token: int) -> str:
        token = int(token)
        if token in self._piece_cache:
            return self._piece_cache[token]
        if token in self._special_ids:
            text = ""
        else:
            piece = self.tokenizer.convert_ids_to_tokens(token)
            if piece is None:
                text = ""
            else:
                text = self.tokenizer.convert_tokens_to_string([piece])
                # decoding a single SentencePiece token drops its leading space
                if piece.startswith(SPIECE_UNDERLINE) and not text.startswith(" "):
                    text = " " + text
        self._piece_cache[token] = text
        return text

    def print_timings(self):
        logger.info("load time = %.2fms", self.load_time * 1000)
