"""
Test doubles

ICommandRunner stand-in that isolates unit tests from subprocess.
"""
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pitor.core.ports import ICommandRunner, CommandResult


@dataclass
class CallRecord:
    """One recorded call"""
    cmd: str
    kwargs: Dict[str, Any] = field(default_factory=dict)


class MockRunner(ICommandRunner):
    """
    Fake command runner

    - records every call so tests can assert on it
    - stub_results presets the result of specific commands
    - anything not stubbed returns returncode=0
    """

    def __init__(self):
        self.calls: List[CallRecord] = []
        self.realtime_calls: List[CallRecord] = []
        # both kinds, in the order they were made
        self.history: List[CallRecord] = []
        # key: command prefix or full command, value: preset CommandResult
        self.stub_results: Dict[str, CommandResult] = {}

    def stub(self, prefix: str, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.stub_results[prefix] = CommandResult(
            returncode=returncode, stdout=stdout, stderr=stderr, command=prefix,
        )

    def _find_stub(self, cmd_str: str) -> Optional[CommandResult]:
        """Exact match first, then prefix match"""
        if cmd_str in self.stub_results:
            return self.stub_results[cmd_str]
        for pattern, result in self.stub_results.items():
            if cmd_str.startswith(pattern):
                return result
        return None

    def run(
        self,
        cmd: Sequence[str],
        check: bool = True,
        timeout: Optional[int] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        cmd_str = " ".join(cmd)
        record = CallRecord(
            cmd=cmd_str,
            kwargs={"check": check, "timeout": timeout, "env": dict(env or {})},
        )
        self.calls.append(record)
        self.history.append(record)

        stub = self._find_stub(cmd_str)
        if stub:
            return stub

        return CommandResult(
            returncode=0,
            stdout="",
            stderr="",
            command=cmd_str,
        )

    def run_realtime(
        self,
        cmd: Sequence[str],
        env: Optional[Mapping[str, str]] = None,
    ) -> int:
        cmd_str = " ".join(cmd)
        record = CallRecord(cmd=cmd_str, kwargs={"env": dict(env or {})})
        self.realtime_calls.append(record)
        self.history.append(record)

        stub = self._find_stub(cmd_str)
        if stub:
            return stub.returncode
        return 0

    # ===== Assertion helpers =====

    def assert_called_with(self, substring: str) -> CallRecord:
        """At least one call contains substring"""
        for call in self.calls + self.realtime_calls:
            if substring in call.cmd:
                return call
        all_cmds = [c.cmd for c in self.calls + self.realtime_calls]
        raise AssertionError(
            f"No call containing '{substring}'.\n"
            f"Calls made:\n" + "\n".join(f"  - {c}" for c in all_cmds)
        )

    def assert_not_called_with(self, substring: str) -> None:
        """No call contains substring"""
        for call in self.calls + self.realtime_calls:
            if substring in call.cmd:
                raise AssertionError(
                    f"Unexpected call containing '{substring}': {call.cmd}"
                )

    @property
    def all_commands(self) -> List[str]:
        """Every command, in call order"""
        return [c.cmd for c in self.history]

    def was_called_with_pattern(self, pattern: str) -> bool:
        """Any call matches the regular expression"""
        return any(re.search(pattern, call.cmd) for call in self.calls + self.realtime_calls)
