#!/usr/bin/env python3
#  Copyright (c) 2025, Anemll  All rights reserved.
#
#  Use of this source code is governed by a MIT license that can be
#  found in the LICENSE.txt file or at https://opensource.org/license/mit

"""Command line entry point.

Usage:
    tokenloop-chat -m Qwen/Qwen2-0.5B -p "Once upon a time" -n 64
    tokenloop-chat -m ./models/alpaca -ins --color
    tokenloop-chat --config params.yaml -i -r "User:"
"""

import logging
import sys

from .console import Console, SessionContext
from .driver import GenerationDriver
from .models.hf_engine import HFEngine
from .params import parse_args

logger = logging.getLogger("tokenloop")


def main(argv=None):
    logging.basicConfig(level=logging.INFO, format="%(message)s", stream=sys.stderr)

    try:
        params = parse_args(argv)
    except (OSError, ValueError) as e:
        logger.error("Error loading parameters: %s", e)
        return 1

    try:
        engine = HFEngine(
            params.model,
            n_ctx=params.n_ctx,
            seed=params.seed,
            device=params.device,
        )
    except (OSError, ValueError) as e:
        logger.error("%s: failed to load model from '%s': %s", __name__, params.model, e)
        return 1

    context = SessionContext(Console(sys.stdout, use_color=params.use_color))
    try:
        driver = GenerationDriver(engine, params, context=context, instream=sys.stdin)
    except ValueError as e:
        logger.error("Error: %s", e)
        return 1
    return driver.run()


if __name__ == "__main__":
    sys.exit(main())
