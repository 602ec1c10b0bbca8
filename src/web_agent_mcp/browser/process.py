"""Chromedriver / Chrome process bookkeeping."""

from typing import List

import psutil

import logging
logger = logging.getLogger(__name__)


def driver_process_tree(driver) -> List[psutil.Process]:
    """Chromedriver and every process it spawned, or [] when unknown."""
    service = getattr(driver, "service", None)
    proc = getattr(service, "process", None)
    pid = getattr(proc, "pid", None)
    if not pid:
        return []
    try:
        root = psutil.Process(pid)
        return [root] + root.children(recursive=True)
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return []


def reap_processes(procs: List[psutil.Process], timeout: float = 3.0) -> List[int]:
    """Wait for ``procs`` to exit, killing survivors. Returns killed PIDs."""
    if not procs:
        return []
    _gone, alive = psutil.wait_procs(procs, timeout=timeout)
    killed = []
    for p in alive:
        try:
            p.kill()
            killed.append(p.pid)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            pass
    if killed:
        logger.warning(f"Killed leftover browser processes: {killed}")
    return killed
