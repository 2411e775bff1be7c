#  Copyright (c) 2025, Anemll  All rights reserved.
#
#  Use of this source code is governed by a MIT license that can be
#  found in the LICENSE.txt file or at https://opensource.org/license/mit

from .errors import EvalError, InputExhausted, EXIT_OK, EXIT_EVAL_FAILED, EXIT_INTERRUPTED
from .console import Console, ConsoleState, InterruptFlag, SessionContext
from .context import RepetitionWindow, ContextWindowTracker
from .multiplexer import InputMultiplexer
from .sampler import GenerationBudget, Sampler
from .session import InteractiveSession, SessionMode
from .driver import GenerationDriver
from .params import GptParams

__version__ = "0.1.0"
