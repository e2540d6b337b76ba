"""System clipboard access through the platform's command-line tools."""

import os
import shutil
import subprocess
import sys
from typing import List, Optional


def _run(cmd: List[str], input_text: Optional[str] = None) -> subprocess.CompletedProcess:
    return subprocess.run(
        cmd,
        input=input_text.encode("utf-8") if input_text is not None else None,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        check=False,
    )


def _read_command() -> Optional[List[str]]:
    if sys.platform == "darwin":
        return ["pbpaste"]
    if os.name == "nt":
        return ["powershell", "-NoProfile", "-Command", "Get-Clipboard"]
    if shutil.which("xclip"):
        return ["xclip", "-selection", "clipboard", "-o"]
    if shutil.which("xsel"):
        return ["xsel", "--clipboard", "--output"]
    return None


def _write_command() -> Optional[List[str]]:
    if sys.platform == "darwin":
        return ["pbcopy"]
    if os.name == "nt":
        return [
            "powershell",
            "-NoProfile",
            "-Command",
            "Set-Clipboard -Value ([Console]::In.ReadToEnd())",
        ]
    if shutil.which("xclip"):
        return ["xclip", "-selection", "clipboard"]
    if shutil.which("xsel"):
        return ["xsel", "--clipboard", "--input"]
    return None


def get_clipboard() -> str:
    """Read the clipboard, or stdin when no clipboard tool is available."""
    cmd = _read_command()
    if cmd is None:
        return sys.stdin.read()
    return _run(cmd).stdout.decode("utf-8", errors="ignore")


def set_clipboard(text: str) -> bool:
    """
    Write ``text`` to the clipboard. Without a clipboard tool the text goes
    to stdout instead and False is returned.
    """
    cmd = _write_command()
    if cmd is None:
        sys.stdout.write(text)
        return False
    _run(cmd, input_text=text)
    return True
