"""Process supervision for a primary command and its optional tunnel.

The supervisor starts the tunnel first, waits a grace period for it to come
up, starts the primary command, and polls it until it exits. When the
primary finishes (or fails to start, or supervision is cancelled) a tunnel
that is still running is killed, and temp files owned by either command are
removed.

Example:
    >>> supervisor = ProcessSupervisor()
    >>> supervisor.run(build_primary_command(pg, port), build_tunnel_command(pg, port))
"""

from __future__ import annotations

import os
import signal
import subprocess
import threading
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from types import FrameType

from loguru import logger

from fig.infra.constants import DEFAULT_CONSTANTS
from fig.infra.errors import ExecutionCancelled, ExecutionError, SpawnError
from fig.infra.types import CommandSpec


class CancellationToken:
    """Cancellation flag checked by the supervisor's wait loops."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; return True early if cancelled."""
        return self._event.wait(timeout)


@contextmanager
def interrupt_handler(
    token: CancellationToken, *, forward_interrupts: bool = True
) -> Generator[CancellationToken, None, None]:
    """Route termination signals to ``token`` for the duration of the block.

    SIGTERM and SIGHUP always cancel. SIGINT cancels only when
    ``forward_interrupts`` is set; for interactive children the terminal
    already delivers SIGINT to the child, so the parent ignores it.

    Previous handlers are restored on exit. Outside the main thread no
    handlers are installed.
    """
    if threading.current_thread() is not threading.main_thread():
        yield token
        return

    def _cancel(signum: int, _frame: FrameType | None) -> None:
        logger.info(f"Received {signal.Signals(signum).name}, cancelling")
        token.cancel()

    def _ignore(signum: int, _frame: FrameType | None) -> None:
        logger.debug(f"Ignoring {signal.Signals(signum).name}; delivered to child")

    handlers = {
        signal.SIGTERM: _cancel,
        signal.SIGINT: _cancel if forward_interrupts else _ignore,
    }
    if hasattr(signal, "SIGHUP"):
        handlers[signal.SIGHUP] = _cancel

    previous = {signum: signal.signal(signum, handler) for signum, handler in handlers.items()}
    try:
        yield token
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)


class ProcessSupervisor:
    """Runs a primary command behind an optional tunnel process.

    The supervisor exclusively owns the processes it spawns. Nothing is
    retried: spawn failures and unsuccessful exits are raised as
    ExecutionError subclasses after teardown.
    """

    def __init__(
        self,
        *,
        startup_delay: float = DEFAULT_CONSTANTS.TUNNEL_STARTUP_DELAY,
        poll_interval: float = DEFAULT_CONSTANTS.POLL_INTERVAL,
        terminate_timeout: float = DEFAULT_CONSTANTS.TERMINATE_TIMEOUT,
        token: CancellationToken | None = None,
    ) -> None:
        """Initialize the supervisor.

        Args:
            startup_delay: Seconds to wait after starting the tunnel before
                           starting the primary command
            poll_interval: Seconds between primary exit checks
            terminate_timeout: Seconds to wait for a terminated primary
                               before killing it
            token: Cancellation token checked while waiting
        """
        self.startup_delay = startup_delay
        self.poll_interval = poll_interval
        self.terminate_timeout = terminate_timeout
        self.token = token or CancellationToken()

    # =========================================================================
    # Flows
    # =========================================================================

    def run(
        self,
        primary: CommandSpec,
        tunnel: CommandSpec | None = None,
        *,
        suppress_std: bool = False,
    ) -> None:
        """Run ``primary``, starting ``tunnel`` first when given.

        Args:
            primary: The command the operator asked for
            tunnel: Command exposing the upstream service locally
            suppress_std: Send child stdout/stderr to /dev/null

        Raises:
            SpawnError: If either process could not be started
            ExecutionCancelled: If the token was cancelled
            ExecutionError: If the primary exited unsuccessfully
        """
        tunnel_process: subprocess.Popen[bytes] | None = None
        try:
            if tunnel is not None:
                tunnel_process = self._spawn(tunnel, suppress_std, detach=True)
                logger.debug(
                    f"Waiting {self.startup_delay}s for tunnel (pid {tunnel_process.pid})"
                )
                if self.token.wait(self.startup_delay):
                    raise ExecutionCancelled(
                        "Cancelled while waiting for tunnel to start"
                    )

            primary_process = self._spawn(primary, suppress_std)
            returncode = self._wait(primary_process, primary)
        finally:
            if tunnel_process is not None:
                self._teardown(tunnel_process, tunnel)
            self._cleanup(primary, tunnel)

        self._check_returncode(primary, returncode)

    def run_forward(self, command: CommandSpec, *, suppress_std: bool = False) -> None:
        """Run a forwarding command to completion as the primary process.

        Unlike ``run`` there is no partner process to tear down; the
        forwarding command itself is the thing being awaited.

        Raises:
            SpawnError: If the process could not be started
            ExecutionCancelled: If the token was cancelled
            ExecutionError: If the command exited unsuccessfully
        """
        try:
            process = self._spawn(command, suppress_std)
            returncode = self._wait(process, command)
        finally:
            self._cleanup(command)

        self._check_returncode(command, returncode)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _spawn(
        self, command: CommandSpec, suppress_std: bool, *, detach: bool = False
    ) -> subprocess.Popen[bytes]:
        """Start ``command``.

        A detached process gets its own session, so terminal signals such as
        Ctrl-C typed into an interactive primary never reach it; it is only
        stopped through ``_teardown``.
        """
        stream = subprocess.DEVNULL if suppress_std else None
        env = {**os.environ, **command.env} if command.env else None

        logger.info(f"Starting: {command.display()}")
        try:
            process = subprocess.Popen(
                command.argv(),
                stdin=subprocess.DEVNULL if detach else None,
                stdout=stream,
                stderr=stream,
                env=env,
                start_new_session=detach,
            )
        except OSError as e:
            raise SpawnError(
                f"Failed to start {command.program}",
                details=str(e),
            ) from e

        logger.debug(f"Started {command.program} with pid {process.pid}")
        return process

    def _wait(self, process: subprocess.Popen[bytes], command: CommandSpec) -> int:
        """Poll ``process`` until it exits, terminating it if cancelled."""
        while (returncode := process.poll()) is None:
            if self.token.wait(self.poll_interval):
                logger.info(f"Stopping {command.program} (pid {process.pid})")
                self._terminate(process)
                raise ExecutionCancelled(
                    f"{command.program} was cancelled", returncode=process.returncode
                )
        logger.debug(f"{command.program} exited with {returncode}")
        return returncode

    def _terminate(self, process: subprocess.Popen[bytes]) -> None:
        if process.poll() is not None:
            return
        process.terminate()
        try:
            process.wait(timeout=self.terminate_timeout)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()

    def _teardown(
        self, process: subprocess.Popen[bytes], command: CommandSpec | None
    ) -> None:
        """Kill the tunnel if it is still running. Failures are only logged."""
        name = command.program if command else "tunnel"
        if process.poll() is not None:
            logger.debug(f"{name} already exited with {process.returncode}")
            return

        logger.info(f"Stopping {name} (pid {process.pid})")
        try:
            process.kill()
            process.wait(timeout=self.terminate_timeout)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"Failed to stop {name} (pid {process.pid}): {e}")

    @staticmethod
    def _cleanup(*commands: CommandSpec | None) -> None:
        for command in _present(commands):
            try:
                command.cleanup()
            except OSError as e:
                logger.warning(f"Failed to remove temp files for {command.program}: {e}")

    @staticmethod
    def _check_returncode(command: CommandSpec, returncode: int) -> None:
        if returncode != 0:
            raise ExecutionError.from_returncode(command.program, returncode)


def _present(commands: Iterable[CommandSpec | None]) -> Iterable[CommandSpec]:
    return (command for command in commands if command is not None)
