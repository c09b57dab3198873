import inspect
import textwrap
import shutil
import re
import os
from datetime import date, datetime, time, timezone, tzinfo
from pathlib import Path
from dateutil import tz

from natcal.natcal_env import NatcalEnvironment

WHITESPACE_REGEX = re.compile(r"\s+")


def collapse_spaces(text: str) -> str:
    """Squeeze runs of whitespace to single spaces and trim the ends."""
    return WHITESPACE_REGEX.sub(" ", text).strip()


def remove_span(text: str, span: tuple[int, int]) -> str:
    """
    Return `text` with the characters in `span` removed.

    The two sides are joined with a space so that words on either side
    of the removed phrase stay separate; whitespace is then collapsed.
    """
    start, end = span
    return collapse_spaces(f"{text[:start]} {text[end:]}")


def timedelta_str_to_seconds(time_str: str) -> tuple[bool, int | str]:
    """
    Converts a time string composed of integers followed by 'w', 'd', 'h', 'm'
    or 's' into the total number of seconds.
    Args:
        time_str (str): The time string (e.g., '1h30m').
    Returns:
        (True, seconds) on success, (False, message) otherwise.
    """
    multipliers = {
        "w": 7 * 24 * 60 * 60,
        "d": 24 * 60 * 60,
        "h": 60 * 60,
        "m": 60,
        "s": 1,
    }
    time_str = time_str.strip().lower()
    if not re.fullmatch(r"(\d+[wdhms])+", time_str):
        return (
            False,
            f"Invalid time string {time_str!r}. Expected integers followed by 'w', 'd', 'h', 'm' or 's'.",
        )
    matches = re.findall(r"(\d+)([wdhms])", time_str)
    total_seconds = sum(int(value) * multipliers[unit] for value, unit in matches)
    return True, total_seconds


# ─── UTC helpers ─────────────────────────────────────────────


def fmt_utc_z(dt: datetime) -> str:
    """Aware datetime -> 'YYYYMMDDTHHMMSSZ'."""
    if dt.tzinfo is None:
        raise ValueError(f"expected an aware datetime, got {dt!r}")
    return dt.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def parse_utc_z(s: str) -> datetime:
    """'YYYYMMDDTHHMM[SS]Z' -> aware UTC datetime."""
    s = s.strip()
    if not s.endswith("Z"):
        raise ValueError(f"expected a UTC stamp ending in 'Z', got {s!r}")
    body = s[:-1]
    fmt = "%Y%m%dT%H%M%S" if len(body) == 15 else "%Y%m%dT%H%M"
    return datetime.strptime(body, fmt).replace(tzinfo=timezone.utc)


def require_aware(reference: datetime) -> datetime:
    if reference.tzinfo is None or reference.utcoffset() is None:
        raise ValueError(f"reference must be timezone-aware, got {reference!r}")
    return reference


def localize(day: date, clock: time, zone: tzinfo) -> datetime:
    """
    Combine a local calendar day and wall-clock time in `zone` and return
    the instant in UTC.

    Ambiguous wall times (the repeated hour when clocks fall back) take
    the earlier instant. Wall times that do not exist (skipped when clocks
    spring forward) are moved forward by the size of the gap.
    """
    local = datetime.combine(day, clock).replace(tzinfo=zone, fold=0)
    if not tz.datetime_exists(local):
        local = tz.resolve_imaginary(local)
    return local.astimezone(timezone.utc)


# ─── Logging ─────────────────────────────────────────────


def _get_runtime_home() -> Path:
    override = os.environ.get("NATCAL_HOME")
    if override:
        return Path(override).expanduser()
    return NatcalEnvironment().home


def _resolve_log_file_path(file_path: str | Path) -> Path:
    path = Path(file_path)
    if path.is_absolute():
        return path
    return _get_runtime_home() / path


def _default_log_relative_path(kind: str) -> Path:
    """Return logs/log_<YYMMDD>.md style paths under the runtime home."""
    suffix = datetime.now().strftime("%y%m%d")
    return Path("logs") / f"{kind}_{suffix}.md"


def log_msg(
    msg: str,
    file_path: str | Path | None = None,
    print_output: bool = False,
):
    """
    Log a message and save it directly to a file.

    Args:
        msg (str): The message to log.
        file_path (str | Path | None, optional): Overrides the default path when
            provided. Defaults to ``None`` which writes to ``logs/log_<YYMMDD>.md``.
        print_output (bool, optional): If True, also print to console.
    """
    frame = inspect.stack()[1].frame
    func_name = frame.f_code.co_name

    caller_name = func_name
    if "self" in frame.f_locals:
        cls_name = frame.f_locals["self"].__class__.__name__
        caller_name = f"{cls_name}.{func_name}"
    elif "cls" in frame.f_locals:
        cls_name = frame.f_locals["cls"].__name__
        caller_name = f"{cls_name}.{func_name}"
    del frame

    lines = [
        f"- {datetime.now().strftime('%H:%M:%S')} log_msg ({caller_name}):  ",
    ]
    lines.extend(
        [
            f"\n{x}"
            for x in textwrap.wrap(
                msg.strip(),
                width=max(shutil.get_terminal_size()[0] - 6, 40),
                initial_indent="   ",
                subsequent_indent="   ",
            )
        ]
    )
    lines.append("\n\n")

    # Best-effort file logging; fall back to console when the file is unwritable.
    if file_path is None:
        file_path = _default_log_relative_path("log")
    log_path = _resolve_log_file_path(file_path)

    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(log_path, "a", encoding="utf-8") as f:
            f.writelines(lines)
    except OSError:
        print_output = True

    if print_output:
        print("".join(lines))
