import io
import signal

from tokenloop.console import (
    BOLD,
    GREEN,
    RESET_COLOR,
    YELLOW,
    Console,
    ConsoleState,
    InterruptFlag,
    SessionContext,
)
from tokenloop.errors import EXIT_INTERRUPTED


def test_style_is_emitted_only_on_change():
    stream = io.StringIO()
    console = Console(stream, use_color=True)
    console.set_state(ConsoleState.PROMPT)
    console.set_state(ConsoleState.PROMPT)
    console.set_state(ConsoleState.USER_INPUT)
    console.set_state(ConsoleState.DEFAULT)
    console.set_state(ConsoleState.DEFAULT)
    assert stream.getvalue() == YELLOW + BOLD + GREEN + RESET_COLOR


def test_no_escape_codes_without_color():
    stream = io.StringIO()
    console = Console(stream, use_color=False)
    console.set_state(ConsoleState.PROMPT)
    console.write("text")
    assert stream.getvalue() == "text"
    assert console.state is ConsoleState.DEFAULT


def test_interrupt_flag_request_reports_repeat():
    flag = InterruptFlag()
    assert flag.request()
    assert flag.is_set()
    assert not flag.request()
    flag.clear()
    assert flag.request()


def test_second_unconsumed_interrupt_forces_exit():
    exits = []
    context = SessionContext(Console(io.StringIO(), use_color=True), exit_fn=exits.append)
    context.console.set_state(ConsoleState.PROMPT)

    context.handle_sigint(signal.SIGINT, None)
    assert context.interrupt.is_set()
    assert exits == []
    assert context.console.state is ConsoleState.DEFAULT

    context.handle_sigint(signal.SIGINT, None)
    assert exits == [EXIT_INTERRUPTED]


def test_consumed_interrupt_does_not_exit():
    exits = []
    context = SessionContext(Console(io.StringIO()), exit_fn=exits.append)
    context.handle_sigint()
    context.interrupt.clear()
    context.handle_sigint()
    assert exits == []


def test_sigint_handler_install_and_restore():
    before = signal.getsignal(signal.SIGINT)
    context = SessionContext(Console(io.StringIO()), exit_fn=lambda status: None)
    context.install_sigint_handler()
    try:
        assert signal.getsignal(signal.SIGINT) == context.handle_sigint
    finally:
        context.restore_sigint_handler()
    assert signal.getsignal(signal.SIGINT) == before
