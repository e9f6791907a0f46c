import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


# ── column widths ─────────────────────────────────────────────────────────────
_W_SERIAL  = 6
_W_DATE    = 12
_W_TIME    = 10
_W_LEVEL   = 8
_W_UID     = 36
_W_EMAIL   = 28
_W_MODULE  = 30
_W_EVENT   = 48
_SEP       = " | "
_COLUMNS   = (_W_SERIAL, _W_DATE, _W_TIME, _W_LEVEL, _W_UID, _W_EMAIL, _W_MODULE, _W_EVENT)
_TOTAL_W   = sum(_COLUMNS) + len(_SEP) * (len(_COLUMNS) - 1)


class StructuredFileHandler(logging.FileHandler):
    """File handler that writes fixed-width columns, one record per line.

    Column layout:
        Serial | Date | Time | Level | User ID | User Email | Module.Function | Event

    ``user_id`` / ``user_email`` come from ``extra={}`` on the logging call.
    """

    def __init__(self, log_file_path: str):
        super().__init__(log_file_path, mode="a", encoding="utf-8")
        self.log_counter = self._next_serial_number()
        self._write_header_if_empty()

    def _next_serial_number(self) -> int:
        path = Path(self.baseFilename)
        try:
            if path.exists() and path.stat().st_size > 0:
                for line in reversed(path.read_text(encoding="utf-8").splitlines()):
                    first = line.split(_SEP, 1)[0].strip()
                    if first.isdigit():
                        return int(first) + 1
        except OSError:
            pass
        return 1

    def _write_header_if_empty(self):
        path = Path(self.baseFilename)
        if path.exists() and path.stat().st_size > 0:
            return
        header = _SEP.join(
            f"{title:<{width}}"
            for title, width in zip(
                ("#", "Date", "Time", "Level", "User ID", "User Email", "Module.Function", "Event"),
                _COLUMNS,
            )
        )
        self.stream.write("=" * _TOTAL_W + "\n")
        self.stream.write(f"{'BUDGET THIS - AUTH LOG':^{_TOTAL_W}}\n")
        self.stream.write("=" * _TOTAL_W + "\n")
        self.stream.write(header + "\n")
        self.stream.write("-" * _TOTAL_W + "\n")
        self.flush()

    def format_line(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created)
        uid   = str(getattr(record, "user_id",    "-") or "-")
        email = str(getattr(record, "user_email", "-") or "-")
        event = record.getMessage()
        if len(event) > _W_EVENT:
            event = event[:_W_EVENT - 3] + "..."

        return (
            f"{self.log_counter:<{_W_SERIAL}}"
            f"{_SEP}{dt.strftime('%Y-%m-%d'):<{_W_DATE}}"
            f"{_SEP}{dt.strftime('%H:%M:%S'):<{_W_TIME}}"
            f"{_SEP}{record.levelname:<{_W_LEVEL}}"
            f"{_SEP}{uid:<{_W_UID}}"
            f"{_SEP}{email:<{_W_EMAIL}}"
            f"{_SEP}{f'{record.module}.{record.funcName}':<{_W_MODULE}}"
            f"{_SEP}{event:<{_W_EVENT}}"
        )

    def emit(self, record: logging.LogRecord):
        try:
            lines = [self.format_line(record)]
            indent = " " * (_W_SERIAL + len(_SEP))

            full_msg = record.getMessage()
            if len(full_msg) > _W_EVENT:
                lines.append(f"{indent}Details: {full_msg}")
            if record.exc_info:
                lines.append(f"{indent}Exception: {logging.Formatter().formatException(record.exc_info)}")
            if record.levelno >= logging.ERROR:
                lines.append("-" * _TOTAL_W)

            self.stream.write("\n".join(lines) + "\n")
            self.flush()
            self.log_counter += 1
        except Exception:
            self.handleError(record)


# ── setup ─────────────────────────────────────────────────────────────────────

def setup_file_logging(log_level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """Configure structured file + console logging.

    File handler records WARNING and above; console handler uses *log_level*.
    """
    log_file_path = Path(log_file) if log_file else Path(__file__).parent.parent / "logs" / "logs.txt"
    log_file_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = StructuredFileHandler(str(log_file_path))
    file_handler.setLevel(logging.WARNING)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    )

    logging.basicConfig(level=log_level, handlers=[file_handler, console_handler], force=True)

    logger = logging.getLogger(__name__)
    logger.warning("Budget This API SESSION STARTED at %s", datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC"))
    return logger


# ── helpers for callers ───────────────────────────────────────────────────────

def log_auth_event(
    event: str,
    success: bool = True,
    user_id: Optional[str] = None,
    user_email: Optional[str] = None,
    reason: Optional[str] = None,
):
    """Record an authentication outcome with user context.

    Both outcomes are written at WARNING so they land in the file log and
    give a per-user audit trail. Never pass secrets in *reason*.
    """
    _log = logging.getLogger("auth_events")
    extra = {"user_id": user_id or "-", "user_email": user_email or "-"}

    if success:
        _log.warning("AUTH %s OK", event, extra=extra)
    else:
        _log.warning("AUTH %s FAILED: %s", event, reason or "unknown", extra=extra)
