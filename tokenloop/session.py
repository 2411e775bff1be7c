#  Copyright (c) 2025, Anemll  All rights reserved.
#
#  Use of this source code is governed by a MIT license that can be
#  found in the LICENSE.txt file or at https://opensource.org/license/mit

"""Interactive session state machine.

After every iteration in which the pending queue is drained, the session
decides whether to hand control back to the user: a reverse prompt at the
end of the recent output, an end-of-sequence token, an exhausted budget or a
Ctrl+C interjection all switch it to soliciting input. In instruct mode every
user turn is wrapped in instruction/response markers.
"""

import logging
from enum import Enum

from .console import ConsoleState
from .errors import InputExhausted

logger = logging.getLogger(__name__)

INSTRUCT_PREFIX = "\n\n### Instruction:\n\n"
INSTRUCT_SUFFIX = "\n\n### Response:\n\n"
INSTRUCT_ANTIPROMPT = "### Instruction:\n\n"


class SessionMode(Enum):
    NORMAL = "normal"
    AWAITING_ANTIPROMPT_CHECK = "awaiting_antiprompt_check"
    SOLICITING_INPUT = "soliciting_input"
    TERMINATED = "terminated"


def ends_with_antiprompt(text, antiprompts):
    """True if ``text`` ends with any of ``antiprompts`` (exact, case-sensitive)."""
    for antiprompt in antiprompts:
        if antiprompt and text.endswith(antiprompt):
            return True
    return False


class InteractiveSession:
    """Decides when to pause generation and reads the user's next turn."""

    def __init__(self, engine, tracker, multiplexer, budget, params, context, instream):
        self.engine = engine
        self.tracker = tracker
        self.multiplexer = multiplexer
        self.budget = budget
        self.params = params
        self.context = context
        self.instream = instream
        self.mode = SessionMode.NORMAL
        # one-shot: the next forwarded batch was typed by the user, do not echo it
        self.input_noecho = False

        self.inp_pfx = engine.tokenize(INSTRUCT_PREFIX, True)
        self.inp_sfx = engine.tokenize(INSTRUCT_SUFFIX, False)

        if params.interactive_start:
            context.interrupt.set()

    @property
    def console(self):
        return self.context.console

    def should_solicit(self, last_token):
        """Evaluate every condition that hands control back to the user.

        An exhausted budget is refilled here, so the conditions are checked
        in the same iteration that produced the last token.
        """
        solicit = False
        if self.budget.exhausted:
            self.budget.refill()
            solicit = True
        if last_token == self.engine.eos_token:
            solicit = True
        if self.context.interrupt.is_set():
            solicit = True
        if self.params.antiprompt and ends_with_antiprompt(self.tracker.render_window(), self.params.antiprompt):
            solicit = True
        return solicit

    def step(self, last_token):
        """Advance the state machine once per driver iteration."""
        params = self.params
        if params.interactive and self.multiplexer.drained:
            self.mode = SessionMode.AWAITING_ANTIPROMPT_CHECK
            try:
                if self.should_solicit(last_token):
                    self.solicit()
            finally:
                self.context.interrupt.clear()
            self.mode = SessionMode.NORMAL

        if not params.interactive:
            if last_token == self.engine.eos_token or self.budget.exhausted:
                self.mode = SessionMode.TERMINATED
        return self.mode

    def solicit(self):
        """Read one user turn and queue it for the engine."""
        self.mode = SessionMode.SOLICITING_INPUT
        # a Ctrl+C while the user is typing forces an exit
        self.context.interrupt.set()
        self.console.set_state(ConsoleState.USER_INPUT)

        if self.params.instruct:
            self.multiplexer.skip_to_end()
            self.multiplexer.extend(self.inp_pfx)
            self.console.write("\n> ")
        self.console.flush()

        try:
            buffer = self.read_input()
        finally:
            self.console.set_state(ConsoleState.DEFAULT)

        line_inp = self.engine.tokenize(buffer, False)
        self.multiplexer.extend(line_inp)
        if self.params.instruct:
            self.multiplexer.extend(self.inp_sfx)

        self.budget.consume(len(line_inp))
        self.input_noecho = True
        logger.debug("queued %d input tokens, budget now %d", len(line_inp), self.budget.remaining)

    def read_input(self):
        """Read a line, following trailing-backslash continuations.

        Raises ``InputExhausted`` if the stream is closed before anything was
        read. Lines read before EOF in a continuation are returned as is.
        """
        buffer = ""
        while True:
            line = self.instream.readline()
            if not line:
                if not buffer:
                    raise InputExhausted("input stream closed")
                return buffer
            line = line.rstrip("\r\n")
            if line.endswith("\\"):
                buffer += line[:-1] + "\n"
                continue
            buffer += line + "\n"
            return buffer
