#  Copyright (c) 2025, Anemll  All rights reserved.
#
#  Use of this source code is governed by a MIT license that can be
#  found in the LICENSE.txt file or at https://opensource.org/license/mit

"""Top-level generation loop.

Each iteration submits the previous batch to the engine, then either
forwards pending input (prompt remainder or user text) or samples one new
token, echoes it, and lets the session decide whether to pause for input or
stop.
"""

import logging
import sys
import time

from tqdm import tqdm

from .console import ConsoleState, Console, SessionContext
from .context import ContextWindowTracker
from .errors import EvalError, InputExhausted, EXIT_OK, EXIT_EVAL_FAILED
from .multiplexer import InputMultiplexer
from .sampler import GenerationBudget, Sampler
from .session import InteractiveSession, SessionMode

logger = logging.getLogger(__name__)


class GenerationDriver:
    """Wires the loop components together for one session."""

    def __init__(self, engine, params, context=None, instream=None):
        self.engine = engine
        self.params = params
        self.context = context if context is not None else SessionContext(Console(use_color=params.use_color))
        self.instream = instream if instream is not None else sys.stdin

        self.prompt_tokens = engine.tokenize(params.prompt, True)
        n_ctx = engine.n_ctx
        if len(self.prompt_tokens) > n_ctx:
            raise ValueError(f"prompt is too long ({len(self.prompt_tokens)} tokens, max {n_ctx})")
        self.n_predict = min(params.n_predict, n_ctx - len(self.prompt_tokens))

        self.tracker = ContextWindowTracker(engine, params.repeat_last_n, params.n_threads)
        self.multiplexer = InputMultiplexer(self.tracker, self.prompt_tokens)
        self.budget = GenerationBudget(self.n_predict)
        self.sampler = Sampler(engine, self.tracker, self.budget, params)
        self.session = InteractiveSession(
            engine, self.tracker, self.multiplexer, self.budget, params, self.context, self.instream
        )

        # timings
        self.eval_time = 0.0
        self.sample_time = 0.0
        self.n_eval = 0
        self.n_sampled = 0

    @property
    def console(self):
        return self.context.console

    def run(self) -> int:
        """Run the session to completion and return the process exit status."""
        params = self.params
        if params.interactive:
            self.context.install_sigint_handler()
        try:
            self._log_session_info()
            if params.warmup:
                self.tracker.warmup()
            self._loop()
            return EXIT_OK
        except EvalError as e:
            logger.error("%s: failed to eval: %s", e.call, e)
            return EXIT_EVAL_FAILED
        except InputExhausted:
            logger.info("\n[end of input]")
            return EXIT_OK
        finally:
            if params.interactive:
                self.context.restore_sigint_handler()
            self.console.set_state(ConsoleState.DEFAULT)
            self.console.flush()
            self._log_timings()

    def _loop(self):
        params = self.params
        engine = self.engine
        mux = self.multiplexer
        session = self.session

        prompt_left = len(self.prompt_tokens)
        progress = tqdm(
            total=prompt_left,
            desc="prompt",
            unit="tok",
            file=sys.stderr,
            leave=False,
            disable=not params.show_progress,
        )

        # the first thing we output is the prompt
        self.console.set_state(ConsoleState.PROMPT)

        embd = []
        try:
            while not self.budget.exhausted or params.interactive:
                if embd:
                    start = time.time()
                    self.tracker.submit(embd)
                    self.eval_time += time.time() - start
                    self.n_eval += len(embd)
                embd = []

                if mux.drained:
                    start = time.time()
                    token = self.sampler.sample()
                    self.sample_time += time.time() - start
                    self.n_sampled += 1
                    embd = [token]
                    session.input_noecho = False
                else:
                    embd = mux.forward_batch(params.n_batch)
                    if prompt_left > 0:
                        step = min(prompt_left, len(embd))
                        prompt_left -= step
                        progress.update(step)
                        if prompt_left == 0:
                            progress.close()

                if not session.input_noecho:
                    for token in embd:
                        self.console.write(engine.token_to_str(token))
                    self.console.flush()
                # back to the default color once nothing pending is left to echo
                if not session.input_noecho and mux.drained:
                    self.console.set_state(ConsoleState.DEFAULT)

                if session.step(embd[-1]) is SessionMode.TERMINATED:
                    if embd[-1] == engine.eos_token:
                        logger.info(" [end of text]")
                    break
        finally:
            progress.close()

    def _log_session_info(self):
        params = self.params
        logger.info("seed = %d", params.seed)
        logger.info("prompt: '%s'", params.prompt)
        logger.info("number of tokens in prompt = %d", len(self.prompt_tokens))
        if params.verbose_prompt:
            for token in self.prompt_tokens:
                logger.info("%6d -> '%s'", token, self.engine.token_to_str(token))

        if params.interactive:
            logger.info("interactive mode on.")
            for antiprompt in params.antiprompt:
                logger.info("Reverse prompt: '%s'", antiprompt)
        logger.info(
            "sampling parameters: temp = %f, top_k = %d, top_p = %f, repeat_last_n = %i, repeat_penalty = %f",
            params.temp, params.top_k, params.top_p, params.repeat_last_n, params.repeat_penalty,
        )
        if params.interactive:
            logger.info(
                "== Running in interactive mode. ==\n"
                " - Press Ctrl+C to interject at any time.\n"
                " - Press Return to return control to the model.\n"
                " - If you want to submit another line, end your input in '\\'.\n"
            )

    def _log_timings(self):
        eval_tps = self.n_eval / self.eval_time if self.eval_time > 0 else 0
        sample_ms = self.sample_time * 1000 / self.n_sampled if self.n_sampled else 0
        logger.info("")
        logger.info("Eval: %d tokens in %.1fms (%.1f t/s)", self.n_eval, self.eval_time * 1000, eval_tps)
        logger.info("Sample: %d tokens, %.2fms per token", self.n_sampled, sample_ms)
        self.engine.print_timings()
