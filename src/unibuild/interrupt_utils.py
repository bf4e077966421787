"""Utilities for interrupts and for stopping external tool processes.

KeyboardInterrupt caught inside worker code is forwarded to the main thread,
and process trees left behind by a cancelled build are terminated.
"""

import _thread
import logging

import psutil


def handle_keyboard_interrupt_properly(ke: KeyboardInterrupt) -> None:
    """Forward a KeyboardInterrupt to the main thread and re-raise it.

    Usage:
        try:
            run_something()
        except KeyboardInterrupt as ke:
            handle_keyboard_interrupt_properly(ke)

    Args:
        ke: The KeyboardInterrupt exception to handle

    Raises:
        KeyboardInterrupt: Always
    """
    _thread.interrupt_main()
    raise ke


def terminate_process_tree(pid: int, timeout: float = 3.0) -> int:
    """Terminate a process and all of its descendants.

    Children are terminated before their parents. Processes that are still
    alive after the timeout are killed.

    Args:
        pid: PID of the root process
        timeout: Seconds to wait for graceful termination

    Returns:
        Number of processes signalled
    """
    try:
        root = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return 0

    try:
        processes = root.children(recursive=True)
    except psutil.NoSuchProcess:
        processes = []
    processes = list(reversed(processes)) + [root]

    signalled: list[psutil.Process] = []
    for proc in processes:
        try:
            proc.terminate()
            signalled.append(proc)
            logging.debug(f"Terminated process {proc.pid}")
        except psutil.NoSuchProcess:
            pass
        except KeyboardInterrupt:
            raise
        except Exception as e:
            logging.warning(f"Failed to terminate process {proc.pid}: {e}")

    _gone, alive = psutil.wait_procs(signalled, timeout=timeout)

    for proc in alive:
        try:
            proc.kill()
            logging.warning(f"Force killed process {proc.pid}")
        except psutil.NoSuchProcess:
            pass
        except KeyboardInterrupt:
            raise
        except Exception as e:
            logging.warning(f"Failed to kill process {proc.pid}: {e}")

    return len(signalled)
