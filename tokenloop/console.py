#  Copyright (c) 2025, Anemll  All rights reserved.
#
#  Use of this source code is governed by a MIT license that can be
#  found in the LICENSE.txt file or at https://opensource.org/license/mit

"""Console presentation state and the SIGINT interject flag.

The console remembers the last style it emitted and only writes an ANSI
sequence when the requested style differs. The interrupt flag is a
``threading.Event`` so the signal handler can set it without touching any
other loop state; the main loop polls and clears it.
"""

import os
import signal
import sys
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from .errors import EXIT_INTERRUPTED

# ANSI color codes
YELLOW = "\033[33m"
GREEN = "\033[32m"
BOLD = "\033[1m"
RESET_COLOR = "\033[0m"


class ConsoleState(Enum):
    DEFAULT = 0
    PROMPT = 1
    USER_INPUT = 2


_STATE_CODES = {
    ConsoleState.DEFAULT: RESET_COLOR,
    ConsoleState.PROMPT: YELLOW,
    ConsoleState.USER_INPUT: BOLD + GREEN,
}


class Console:
    """Output sink that tracks the current display style."""

    def __init__(self, stream=None, use_color=False):
        self.stream = stream if stream is not None else sys.stdout
        self.use_color = use_color
        self.state = ConsoleState.DEFAULT

    def set_state(self, new_state):
        """Emit the color for ``new_state`` if colors are on and it changed."""
        if not self.use_color:
            return
        if new_state != self.state:
            self.state = new_state
            self.stream.write(_STATE_CODES[new_state])

    def write(self, text):
        self.stream.write(text)

    def flush(self):
        self.stream.flush()


class InterruptFlag:
    """Interject request raised by SIGINT and consumed by the session."""

    def __init__(self):
        self._event = threading.Event()

    def is_set(self):
        return self._event.is_set()

    def set(self):
        self._event.set()

    def clear(self):
        self._event.clear()

    def request(self):
        """Raise the flag. Returns False if it was already raised."""
        if self._event.is_set():
            return False
        self._event.set()
        return True


@dataclass
class SessionContext:
    """Presentation state shared by every component of one session."""

    console: Console
    interrupt: InterruptFlag = field(default_factory=InterruptFlag)
    exit_fn: Callable[[int], None] = os._exit
    _previous_handler: object = field(default=None, init=False, repr=False)

    def handle_sigint(self, signum=None, frame=None):
        """SIGINT handler: reset the color and request an interjection.

        A second interrupt that arrives before the first was consumed
        terminates the process with status 130.
        """
        self.console.set_state(ConsoleState.DEFAULT)
        self.console.write("\n")
        self.console.flush()
        if not self.interrupt.request():
            self.exit_fn(EXIT_INTERRUPTED)

    def install_sigint_handler(self):
        self._previous_handler = signal.getsignal(signal.SIGINT)
        signal.signal(signal.SIGINT, self.handle_sigint)

    def restore_sigint_handler(self):
        if self._previous_handler is not None:
            signal.signal(signal.SIGINT, self._previous_handler)
            self._previous_handler = None
