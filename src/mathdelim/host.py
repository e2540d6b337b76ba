"""Editor, file-store and notification seams around the conversion engine."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence

from rich.console import Console

from .converter.logger import ConversionLogger
from .converter.pipeline import ConversionPipeline
from .parser.segmenter import is_link_blob
from .rules.config import ConversionOptions

logger = logging.getLogger(__name__)


class EditorBuffer(Protocol):
    def get_value(self) -> str: ...

    def set_value(self, text: str) -> None: ...

    def replace_selection(self, text: str) -> None: ...


class FileStore(Protocol):
    def list_markdown_files(self) -> List[str]: ...

    def read(self, name: str) -> str: ...

    def write(self, name: str, text: str) -> None: ...


class Notifier(Protocol):
    def notify(self, message: str) -> None: ...


class TextBuffer:
    """In-memory editor buffer with a single (possibly empty) selection."""

    def __init__(
        self,
        text: str = "",
        selection_start: Optional[int] = None,
        selection_end: Optional[int] = None,
    ):
        self.text = text
        end = len(text) if selection_start is None else selection_start
        self.selection_start = end
        self.selection_end = end if selection_end is None else selection_end

    def get_value(self) -> str:
        return self.text

    def set_value(self, text: str) -> None:
        self.text = text
        self.selection_start = self.selection_end = len(text)

    def replace_selection(self, text: str) -> None:
        self.text = self.text[: self.selection_start] + text + self.text[self.selection_end :]
        self.selection_start = self.selection_end = self.selection_start + len(text)


class DirectoryStore:
    """Markdown files under a directory tree, addressed by relative path."""

    def __init__(self, root: Path, pattern: str = "*.md", exclude_dirs: Sequence[str] = ()):
        self.root = Path(root)
        self.pattern = pattern
        self.exclude_dirs = set(exclude_dirs)

    def list_markdown_files(self) -> List[str]:
        names = []
        for path in self.root.rglob(self.pattern):
            if not path.is_file():
                continue
            relative = path.relative_to(self.root)
            if any(part in self.exclude_dirs for part in relative.parts[:-1]):
                continue
            names.append(relative.as_posix())
        return sorted(names)

    def read(self, name: str) -> str:
        return (self.root / name).read_text(encoding="utf-8")

    def write(self, name: str, text: str) -> None:
        (self.root / name).write_text(text, encoding="utf-8")


class ConsoleNotifier:
    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def notify(self, message: str) -> None:
        self.console.print(f"[bold green]{message}[/bold green]")


@dataclass
class BatchResult:
    total: int = 0
    changed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def unchanged(self) -> int:
        return self.total - len(self.changed) - len(self.failed)


def handle_paste(text: str, editor: EditorBuffer, options: ConversionOptions) -> bool:
    """
    React to a paste event.

    Returns True when the paste was converted and inserted, meaning the host
    must not paste the original text itself. Bare URLs and Markdown links are
    always left to the host.
    """
    if is_link_blob(text.strip()):
        return False
    if not options.enable_default_paste_conversion or not text:
        return False
    editor.replace_selection(ConversionPipeline(options).run(text))
    return True


def paste_with_conversion(text: str, editor: EditorBuffer, options: ConversionOptions) -> None:
    editor.replace_selection(ConversionPipeline(options).run(text))


def convert_editor(editor: EditorBuffer, options: ConversionOptions) -> bool:
    """Convert the whole buffer in place. Returns whether anything changed."""
    current = editor.get_value()
    converted = ConversionPipeline(options).run(current)
    if converted == current:
        return False
    editor.set_value(converted)
    return True


def convert_all_files(
    store: FileStore,
    options: ConversionOptions,
    notifier: Notifier,
    batch_logger: Optional[ConversionLogger] = None,
    dry_run: bool = False,
    on_progress: Optional[Callable[[str], None]] = None,
) -> BatchResult:
    """
    Convert every Markdown file in ``store``.

    Only files whose text changes are written back; with ``dry_run`` nothing
    is written. A file that cannot be read or written is recorded as failed
    and the batch carries on.
    """
    pipeline = ConversionPipeline(options)
    result = BatchResult()
    if batch_logger:
        batch_logger.start_timing()

    for name in store.list_markdown_files():
        result.total += 1
        try:
            content = store.read(name)
            converted = pipeline.run(content)
            changed = converted != content
            if changed and not dry_run:
                store.write(name, converted)
        except (OSError, UnicodeError) as e:
            logger.warning("Failed to convert %s: %s", name, e)
            result.failed.append(name)
            if batch_logger:
                batch_logger.log_failure(name, str(e))
        else:
            if changed:
                result.changed.append(name)
            if batch_logger:
                batch_logger.log_file(name, changed, len(content), len(converted))
        if on_progress:
            on_progress(name)

    verb = "would change" if dry_run else "converted"
    message = f"{len(result.changed)} of {result.total} files {verb}"
    if result.failed:
        message += f", {len(result.failed)} failed"
    notifier.notify(message)
    return result
