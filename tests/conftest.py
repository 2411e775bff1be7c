"""Shared fixtures: a scripted character-level engine and driver factory."""

import io

import numpy as np
import pytest

from tokenloop.console import Console, SessionContext
from tokenloop.driver import GenerationDriver
from tokenloop.errors import EvalError
from tokenloop.models.base_engine import BaseEngine
from tokenloop.params import GptParams

BOS = 1
EOS = 2


class ScriptedEngine(BaseEngine):
    """One token per character; samples come from a fixed script.

    Every call is recorded in ``events`` so tests can check ordering.
    """

    def __init__(self, script=None, default_token=ord("x"), fail_on_eval=None, n_ctx=512):
        self.script = list(script or [])
        self.default_token = default_token
        self.fail_on_eval = fail_on_eval
        self._n_ctx = n_ctx
        self.logits = np.ones(256, dtype=np.float32)
        self.events = []
        self.eval_calls = []
        self.sample_windows = []
        self.on_sample = None

    @property
    def eos_token(self):
        return EOS

    @property
    def n_ctx(self):
        return self._n_ctx

    def tokenize(self, text, add_bos):
        tokens = [BOS] if add_bos else []
        return tokens + [ord(c) for c in text]

    def evaluate(self, tokens, n_past, n_threads):
        self.eval_calls.append((list(tokens), n_past))
        self.events.append(("eval", len(tokens)))
        if self.fail_on_eval is not None and len(self.eval_calls) == self.fail_on_eval:
            raise EvalError("scripted failure")

    def get_logits(self):
        return self.logits

    def sample(self, last_n_tokens, top_k, top_p, temp, repeat_penalty):
        self.sample_windows.append(list(last_n_tokens))
        self.events.append(("sample",))
        if self.on_sample is not None:
            self.on_sample()
        if self.script:
            return self.script.pop(0)
        return self.default_token

    def token_to_str(self, token):
        if token in (0, BOS, EOS):
            return ""
        return chr(token)


class RecordingInput(io.StringIO):
    """Input stream that remembers how many samples preceded each read."""

    def __init__(self, text, engine):
        super().__init__(text)
        self.engine = engine
        self.reads_at = []

    def readline(self, *args):
        self.reads_at.append(len(self.engine.sample_windows))
        return super().readline(*args)


def chars(text):
    return [ord(c) for c in text]


@pytest.fixture
def make_params():
    def _make(**kwargs):
        kwargs.setdefault("seed", 1)
        kwargs.setdefault("warmup", False)
        kwargs.setdefault("repeat_last_n", 8)
        kwargs.setdefault("n_batch", 8)
        return GptParams(**kwargs).finalize()
    return _make


@pytest.fixture
def exits():
    return []


@pytest.fixture
def make_driver(exits):
    def _make(engine, params, stdin="", use_color=False):
        context = SessionContext(Console(io.StringIO(), use_color=use_color), exit_fn=exits.append)
        instream = stdin if hasattr(stdin, "readline") else io.StringIO(stdin)
        return GenerationDriver(engine, params, context=context, instream=instream)
    return _make


def output_of(driver):
    return driver.context.console.stream.getvalue()
