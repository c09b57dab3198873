from pathlib import Path
import os
import sys
import tomllib
from datetime import tzinfo
from pydantic import BaseModel, Field, ValidationError
from typing import Optional
from jinja2 import Template
from dateutil import tz
from tzlocal import get_localzone_name

DURATION_PATTERN = r"^(\d+[wdhms])+$"


# ─── Config Schema ─────────────────────────────────────────────────
class ParseConfig(BaseModel):
    # empty means the machine's local zone
    timezone: str = ""


class DurationConfig(BaseModel):
    event: str = Field("1h", pattern=DURATION_PATTERN)
    block: str = Field("1h", pattern=DURATION_PATTERN)
    reminder: str = Field("15m", pattern=DURATION_PATTERN)
    task: str = Field("30m", pattern=DURATION_PATTERN)


class NatcalConfig(BaseModel):
    title: str = "Natcal Configuration"
    parse: ParseConfig = ParseConfig()
    durations: DurationConfig = DurationConfig()


# ─── Commented Template ────────────────────────────────────
CONFIG_TEMPLATE = """\
title = "{{ title }}"

[parse]
# timezone: str = IANA zone name used to interpret entries,
# e.g. "America/New_York". Leave empty to use the local zone.
timezone = "{{ parse.timezone }}"

[durations]
# The length given to an item whose entry has a start time
# but no end time. Each value is a string of integer-unit
# pairs using w (weeks), d (days), h (hours), m (minutes)
# and s (seconds), e.g. "1h30m".

event = "{{ durations.event }}"
block = "{{ durations.block }}"
reminder = "{{ durations.reminder }}"
task = "{{ durations.task }}"
"""

# ─── Render Config with Comments ───────────────────────────────


def render_config(config: NatcalConfig) -> str:
    template = Template(CONFIG_TEMPLATE)
    return template.render(**config.model_dump()).strip() + "\n"


# ─── Main Environment Class ───────────────────────────────


class NatcalEnvironment:
    def __init__(self):
        self._home = self._resolve_home()
        self._config: Optional[NatcalConfig] = None

    @property
    def home(self) -> Path:
        return self._home

    @property
    def config_path(self) -> Path:
        return self.home / "config.toml"

    def load_config(self) -> NatcalConfig:
        self.home.mkdir(parents=True, exist_ok=True)

        # Step 1: Create the file if it doesn't exist
        if not os.path.exists(self.config_path):
            config = NatcalConfig()
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(render_config(config))
            print(f"✅ Created new config file at {self.config_path}", file=sys.stderr)
            self._config = config
            return config

        # Step 2: Try to load and validate the config
        try:
            with open(self.config_path, "rb") as f:
                data = tomllib.load(f)
            config = NatcalConfig.model_validate(data)
        except (ValidationError, tomllib.TOMLDecodeError) as e:
            print(f"⚠️ Config error in {self.config_path}: {e}\nUsing defaults.", file=sys.stderr)
            config = NatcalConfig()

        # Step 3: Always regenerate the canonical version
        rendered = render_config(config)

        with open(self.config_path, "r", encoding="utf-8") as f:
            current_text = f.read()

        if rendered != current_text:
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(rendered)
            print(f"✅ Updated {self.config_path} with any missing defaults.", file=sys.stderr)

        self._config = config
        return config

    @property
    def config(self) -> NatcalConfig:
        if self._config is None:
            return self.load_config()
        return self._config

    def zone_name(self) -> str:
        return self.config.parse.timezone or get_localzone_name()

    def zone(self) -> tzinfo:
        name = self.zone_name()
        zone = tz.gettz(name)
        if zone is None:
            raise ValueError(f"Unknown timezone: {name!r}")
        return zone

    def durations(self) -> dict[str, str]:
        return self.config.durations.model_dump()

    def _resolve_home(self) -> Path:
        cwd = Path.cwd()
        if (cwd / "config.toml").exists() and (cwd / "logs").is_dir():
            return cwd

        env_home = os.getenv("NATCAL_HOME")
        if env_home:
            return Path(env_home).expanduser()

        xdg_home = os.getenv("XDG_CONFIG_HOME")
        if xdg_home:
            return Path(xdg_home).expanduser() / "natcal"
        else:
            return Path.home() / ".config" / "natcal"
