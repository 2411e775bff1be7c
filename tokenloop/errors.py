#  Copyright (c) 2025, Anemll  All rights reserved.
#
#  Use of this source code is governed by a MIT license that can be
#  found in the LICENSE.txt file or at https://opensource.org/license/mit

"""Error kinds and process exit statuses used by the generation loop."""

EXIT_OK = 0
EXIT_EVAL_FAILED = 1
EXIT_INTERRUPTED = 130


class EvalError(RuntimeError):
    """The engine failed to evaluate a batch. Fatal, never retried."""

    def __init__(self, message, call="evaluate"):
        super().__init__(message)
        self.call = call


class InputExhausted(EOFError):
    """The input stream reached EOF while the session was soliciting input."""
