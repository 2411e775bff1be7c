#  Copyright (c) 2025, Anemll  All rights reserved.
#
#  Use of this source code is governed by a MIT license that can be
#  found in the LICENSE.txt file or at https://opensource.org/license/mit

import numpy as np


def apply_repeat_penalty(logits, last_n_tokens, repeat_penalty):
    """Penalize tokens seen in ``last_n_tokens``.

    Negative logits are multiplied by the penalty and positive ones divided,
    so a penalty > 1 always makes the token less likely.
    """
    logits = np.array(logits, dtype=np.float64)
    if repeat_penalty == 1.0 or len(last_n_tokens) == 0:
        return logits
    seen = np.unique(np.asarray(last_n_tokens, dtype=np.int64))
    seen = seen[(seen >= 0) & (seen < logits.shape[-1])]
    values = logits[seen]
    logits[seen] = np.where(values < 0, values * repeat_penalty, values / repeat_penalty)
    return logits


def sample_top_p_top_k(logits, last_n_tokens, top_k, top_p, temp, repeat_penalty, rng):
    """Sample one token id from ``logits``.

    A non-positive temperature picks the argmax.
    """
    logits = apply_repeat_penalty(logits, last_n_tokens, repeat_penalty)

    if temp <= 0:
        return int(np.argmax(logits))

    logits = logits / temp

    n_vocab = logits.shape[-1]
    if top_k <= 0 or top_k > n_vocab:
        top_k = n_vocab
    # indices of the top_k logits, highest first
    top_idx = np.argpartition(-logits, top_k - 1)[:top_k]
    top_idx = top_idx[np.argsort(-logits[top_idx], kind="stable")]
    top_logits = logits[top_idx]

    probs = np.exp(top_logits - top_logits.max())
    probs /= probs.sum()

    if top_p < 1.0:
        cumsum = np.cumsum(probs)
        # keep the smallest prefix whose mass reaches top_p
        keep = int(np.searchsorted(cumsum, top_p) + 1)
        keep = max(1, min(keep, len(probs)))
        top_idx = top_idx[:keep]
        probs = probs[:keep]
        probs /= probs.sum()

    return int(top_idx[rng.choice(len(probs), p=probs)])
