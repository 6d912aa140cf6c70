"""
Adapters - production implementations of the ports
"""
import os
import subprocess
from typing import Dict, Mapping, Optional, Sequence

from pitor.core.ports import ICommandRunner, CommandResult
from pitor.core.utils import logger

# Shell convention for "command not found"
EXIT_NOT_FOUND = 127


def _merged_env(env: Optional[Mapping[str, str]]) -> Optional[Dict[str, str]]:
    if not env:
        return None
    merged = dict(os.environ)
    merged.update(env)
    return merged


class SubprocessRunner(ICommandRunner):
    """Runs programs on the host via subprocess"""

    def run(
        self,
        cmd: Sequence[str],
        check: bool = True,
        timeout: Optional[int] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        cmd_str = " ".join(cmd)
        logger.debug(f"[CMD] {cmd_str}")

        try:
            result = subprocess.run(
                list(cmd),
                timeout=timeout,
                env=_merged_env(env),
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as e:
            if check:
                raise
            logger.debug(f"[CMD] not found: {e}")
            return CommandResult(returncode=EXIT_NOT_FOUND, stdout="", stderr=str(e), command=cmd_str)

        if result.stdout:
            logger.debug(f"[STDOUT] {result.stdout.strip()}")
        if result.stderr:
            logger.debug(f"[STDERR] {result.stderr.strip()}")

        if check and result.returncode != 0:
            raise subprocess.CalledProcessError(
                result.returncode, list(cmd), result.stdout, result.stderr
            )

        return CommandResult(
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            command=cmd_str,
        )

    def run_realtime(
        self,
        cmd: Sequence[str],
        env: Optional[Mapping[str, str]] = None,
    ) -> int:
        """Progress lines go to the console indented under the current step"""
        logger.debug(f"[CMD:REALTIME] {' '.join(cmd)}")

        try:
            process = subprocess.Popen(
                list(cmd),
                env=_merged_env(env),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                bufsize=1,
            )
        except FileNotFoundError as e:
            logger.debug(f"[CMD:REALTIME] not found: {e}")
            return EXIT_NOT_FOUND

        if process.stdout:
            for line in process.stdout:
                line = line.rstrip()
                if line:
                    logger.info(f"     {line}")

        return process.wait()
