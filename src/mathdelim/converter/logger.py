"""Batch conversion logging."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console

console = Console()


class ConversionLogger:
    """Structured record of one batch conversion run."""

    def __init__(self, root: str = "", verbose: bool = False):
        """Initialize logger.

        Args:
            root: Directory the batch runs over
            verbose: Whether to echo each entry to the console
        """
        self.verbose = verbose
        self.log_data: Dict[str, Any] = {
            "version": "1.0",
            "timestamp": datetime.now().isoformat(),
            "root": root,
            "files": [],
            "failures": [],
            "timing": {"total_seconds": 0},
        }
        self.start_time: Optional[datetime] = None

    def start_timing(self):
        self.start_time = datetime.now()

    def log_file(self, path: str, changed: bool, input_length: int, output_length: int):
        """Record one converted (or unchanged) file."""
        self.log_data["files"].append(
            {
                "path": path,
                "changed": changed,
                "input_length": input_length,
                "output_length": output_length,
            }
        )
        if self.verbose:
            status = "[green]converted[/green]" if changed else "[dim]unchanged[/dim]"
            console.print(f"{status} {path}")

    def log_failure(self, path: str, reason: str):
        self.log_data["failures"].append({"path": path, "reason": reason})
        if self.verbose:
            console.print(f"[yellow]Failed {path}: {reason}[/yellow]")

    @property
    def changed_count(self) -> int:
        return sum(1 for entry in self.log_data["files"] if entry["changed"])

    @property
    def failure_count(self) -> int:
        return len(self.log_data["failures"])

    def finish(self) -> Dict[str, Any]:
        if self.start_time:
            total_seconds = (datetime.now() - self.start_time).total_seconds()
            self.log_data["timing"]["total_seconds"] = total_seconds
        return self.log_data

    def save(self, path: Path) -> Optional[Path]:
        """Write the report as JSON.

        Returns:
            Path to the saved report, or None if it could not be written
        """
        self.finish()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(self.log_data, f, indent=2, ensure_ascii=False)
            if self.verbose:
                console.print(f"[green]Report saved to {path}[/green]")
            return path
        except OSError as e:
            console.print(f"[yellow]Warning: Failed to save report: {e}[/yellow]")
            return None
