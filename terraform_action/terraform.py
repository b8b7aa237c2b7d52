from subprocess import Popen, PIPE
import sys

from . import core


class TfCLI:
    stdout = None

    def __init__(self, *args, stdout=False, echo=True):
        """Wrapper for terraform cli.

        Args:
            stdout (bool, optional): Capture stdout into `self.stdout`. Defaults to False.
            echo (bool, optional): With `stdout`, still print each line to the job log
                as it arrives. Defaults to True.
        """
        self.proc_args = list(args)
        self.proc: Popen[str] | None = None
        self.echo = echo
        if stdout:
            self.stdout_mode = PIPE
        else:
            self.stdout_mode = None

    @property
    def command(self) -> list[str]:
        return ["terraform"] + self.proc_args

    def __enter__(self, *_, **__):
        """Using context manager allows us to setup the cli args separately from
        running them."""
        core.info(f"[command]{' '.join(self.command)}")
        self.proc = Popen(
            self.command,
            shell=False,
            stdout=self.stdout_mode,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
        return self

    def __exit__(self, exc_type, *_):
        if exc_type is not None and self.proc and self.proc.poll() is None:
            self.proc.kill()
            self.proc.wait()

    def __call__(self) -> int:
        if self.proc:
            if self.proc.stdout is not None:
                self.stdout = self._tee(self.proc.stdout)
            self.proc.wait()
            return int(self.proc.returncode)
        return 1

    def _tee(self, stream) -> str:
        """Reads the pipe to EOF, echoing each line to the job log."""
        lines = []
        for line in stream:
            if self.echo:
                sys.stdout.write(line)
                sys.stdout.flush()
            lines.append(line)
        return "".join(lines)
