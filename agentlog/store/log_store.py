"""
Log Store

Numbered Markdown work logs under a directory inside the working root.

File naming: ``NNNN-<sanitized title>.md``, numbered from 0001 to 9999.
The directory is added to the root ``.gitignore`` on first write.
"""

import os
import re
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..common.config import DEFAULT_LOG_DIR, normalize_log_dir_name
from ..common.documents import Document
from ..common.errors import LogNotFoundError, LogStoreError, ValidationError
from ..common.schemas import LogEntry, LogListing, LogSummary, RecordedLog

logger = logging.getLogger("agentlog.store")

MAX_LOG_NUMBER = 9999
LOG_FILE_PATTERN = re.compile(r"^(\d{4})-(.*)\.md$")
_HEADING_PATTERN = re.compile(r"^#\s+(.+)$", re.MULTILINE)
_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1F]')
UNTITLED = "untitled"
UNNAMED_TITLE = "Untitled log"
UNKNOWN_TITLE = "Unknown title"


def sanitize_title(raw_title: Optional[str]) -> str:
    """Turn a free-text title into a safe filename stem."""
    cleaned = str(raw_title or "").strip()
    cleaned = _UNSAFE_CHARS.sub("-", cleaned)
    cleaned = re.sub(r"\s+", "-", cleaned)
    cleaned = re.sub(r"-+", "-", cleaned)
    cleaned = re.sub(r"[. ]+$", "", cleaned)
    cleaned = re.sub(r"^-+", "", cleaned)

    if not cleaned or cleaned in (".", ".."):
        return UNTITLED
    return cleaned


def build_log_content(title: Optional[str], content: Optional[str]) -> str:
    """Render the Markdown body of a new log."""
    safe_title = str(title or "").strip() or UNNAMED_TITLE
    body = str(content or "").rstrip()
    if not body:
        return f"# {safe_title}\n"
    return f"# {safe_title}\n\n{body}\n"


def parse_log_file_name(file_name: str) -> Optional[Tuple[int, str]]:
    """Return ``(number, title)`` for a log file name, or None if it isn't one."""
    match = LOG_FILE_PATTERN.match(file_name)
    if not match:
        return None
    return int(match.group(1)), match.group(2).replace("-", " ")


def extract_title(content: str) -> Optional[str]:
    """First Markdown H1 heading, if any."""
    match = _HEADING_PATTERN.search(content)
    return match.group(1).strip() if match else None


def to_gitignore_entry(log_dir_name: str) -> str:
    normalized = str(log_dir_name).replace("\\", "/").lstrip("/")
    return normalized if normalized.endswith("/") else f"{normalized}/"


def _created_at(path: Path) -> str:
    stat = path.stat()
    # st_birthtime is unavailable on most Linux filesystems
    timestamp = getattr(stat, "st_birthtime", None) or stat.st_ctime
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


class LogStore:
    """
    File-backed store for agent work logs.

    All paths are resolved against ``root_dir``; the log directory must stay
    inside it.
    """

    def __init__(self, root_dir: Union[str, Path, None] = None, log_dir: str = DEFAULT_LOG_DIR):
        self.root_dir = Path(root_dir or os.getcwd()).resolve()
        self.log_dir_name = normalize_log_dir_name(log_dir)
        self.log_dir = (self.root_dir / self.log_dir_name).resolve()
        self.gitignore_path = self.root_dir / ".gitignore"

    # ------------------------------------------------------------------ #
    # Directory bookkeeping
    # ------------------------------------------------------------------ #

    def _ensure_inside_root(self) -> None:
        try:
            self.log_dir.relative_to(self.root_dir)
        except ValueError:
            raise LogStoreError(
                f"Log directory must be inside the working directory: {self.log_dir_name}"
            )

    def _ensure_gitignore_entry(self) -> None:
        entry = to_gitignore_entry(self.log_dir_name)
        try:
            existing = self.gitignore_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            existing = ""

        lines = [line.strip() for line in existing.splitlines()]
        if entry in lines or entry.rstrip("/") in lines:
            return

        prefix = "\n" if existing and not existing.endswith("\n") else ""
        self.gitignore_path.write_text(f"{existing}{prefix}{entry}\n", encoding="utf-8")
        logger.info("Added %s to %s", entry, self.gitignore_path)

    def _log_files(self) -> List[Path]:
        """Regular files in the log directory; empty when the directory is absent."""
        try:
            return sorted(p for p in self.log_dir.iterdir() if p.is_file())
        except FileNotFoundError:
            return []

    def _next_number(self) -> int:
        max_number = 0
        for path in self._log_files():
            parsed = parse_log_file_name(path.name)
            if parsed and parsed[0] > max_number:
                max_number = parsed[0]

        if max_number >= MAX_LOG_NUMBER:
            raise LogStoreError(f"Log numbering has reached the limit of {MAX_LOG_NUMBER}")
        return max_number + 1

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #

    def record(self, title: str, content: str = "") -> RecordedLog:
        """Write a new numbered log file and return where it went."""
        trimmed_title = str(title or "").strip()
        if not trimmed_title:
            raise ValidationError("title must not be empty")

        self._ensure_inside_root()
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._ensure_gitignore_entry()

        number = self._next_number()
        file_name = f"{number:04d}-{sanitize_title(trimmed_title)}.md"
        file_path = self.log_dir / file_name
        file_path.write_text(build_log_content(trimmed_title, content), encoding="utf-8")
        logger.info("Recorded log %s", file_name)

        return RecordedLog(
            file_path=str(file_path),
            file_name=file_name,
            number=number,
            log_dir=self.log_dir_name,
        )

    def list_logs(self) -> LogListing:
        logs = []
        for path in self._log_files():
            parsed = parse_log_file_name(path.name)
            if not parsed:
                continue
            number, title = parsed

            # Best effort: a heading inside the file wins over the file name
            try:
                extracted = extract_title(path.read_text(encoding="utf-8"))
                if extracted:
                    title = extracted
            except (OSError, UnicodeDecodeError) as e:
                logger.debug("Could not read title from %s: %s", path.name, e)

            logs.append(LogSummary(
                number=number,
                file_name=path.name,
                title=title,
                created_at=_created_at(path),
            ))

        logs.sort(key=lambda log: log.number)
        return LogListing(logs=logs, total=len(logs), log_dir=self.log_dir_name)

    def read_log(self, identifier: Union[int, str]) -> LogEntry:
        """
        Read a log by number (``3`` or ``"3"``) or by file name
        (``"0003-fix-login.md"``).
        """
        if identifier is None or identifier == "":
            raise ValidationError("identifier must not be empty")

        if isinstance(identifier, int) or re.fullmatch(r"[0-9]+", str(identifier).strip()):
            number = int(identifier)
            file_name = self._find_by_number(number)
        else:
            file_name = str(identifier).strip()
            parsed = parse_log_file_name(file_name)
            if not parsed or "/" in file_name or "\\" in file_name:
                raise ValidationError(f"Invalid log file name: {file_name}")
            number = parsed[0]

        file_path = self.log_dir / file_name
        try:
            content = file_path.read_text(encoding="utf-8")
            created_at = _created_at(file_path)
        except FileNotFoundError:
            raise LogNotFoundError(f"Log file does not exist: {file_name}")

        parsed = parse_log_file_name(file_name)
        title = extract_title(content) or (parsed[1] if parsed else None) or UNKNOWN_TITLE

        return LogEntry(
            number=number,
            file_name=file_name,
            title=title,
            content=content,
            created_at=created_at,
        )

    def _find_by_number(self, number: int) -> str:
        if not self.log_dir.is_dir():
            raise LogNotFoundError(f"Log directory does not exist: {self.log_dir_name}")

        prefix = f"{number:04d}-"
        for path in self._log_files():
            if path.name.startswith(prefix) and path.name.endswith(".md"):
                return path.name
        raise LogNotFoundError(f"No log found with number {number}")

    def collect_documents(self) -> List[Document]:
        """All Markdown files in the log directory, for one search."""
        documents = []
        for path in self._log_files():
            if not path.name.endswith(".md"):
                continue
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Skipping unreadable log %s: %s", path.name, e)
                continue
            documents.append(Document(path=path.name, text=text))
        return documents
