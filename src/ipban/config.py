"""Configuration provider - loads settings into an immutable snapshot.

The configuration file is YAML:

    settings:
      FailedLoginAttemptsBeforeBan: 5
      BanTime: "1.00:00:00"
      Whitelist: 10.0.0.0/8, office.example.com
      WhitelistRegex: |
        ^192\\.168\\.
        *\\.*$
      Blacklist: ""
      BlacklistRegex: ""
      UserNameWhiteList: admin, deploy

    # Event log expression groups, only read when the platform supports them
    expressions:
      - keywords: "0x8010000000000000"
        patterns:
          - "^An account failed to log on"

Settings are a flat key/value map of strings. Typed accessors never raise:
a missing key or a value that fails to convert yields the caller's default.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

from .lists.matcher import DEFAULT_MAX_EDIT_DISTANCE
from .lists.pattern import compile_expression

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.environ.get("IPBAN_CONFIG", "ipban.yaml")

# Keys of the raw list text blobs
WHITELIST_KEY = "Whitelist"
WHITELIST_REGEX_KEY = "WhitelistRegex"
BLACKLIST_KEY = "Blacklist"
BLACKLIST_REGEX_KEY = "BlacklistRegex"
USER_NAME_WHITELIST_KEY = "UserNameWhiteList"
USER_NAME_EDIT_DISTANCE_KEY = "UserNameWhiteListMinimumEditDistance"

# [-][d.]hh:mm[:ss[.fffffff]]
_DURATION_RE = re.compile(
    r"^(?P<sign>-)?(?:(?P<days>\d+)\.)?(?P<hours>\d{1,2}):(?P<minutes>\d{1,2})"
    r"(?::(?P<seconds>\d{1,2})(?:\.(?P<fraction>\d{1,7}))?)?$"
)


class ConfigError(ValueError):
    """Configuration file has the wrong shape."""


class TextScalarLoader(yaml.SafeLoader):
    """SafeLoader that keeps numbers and timestamps as the text written.

    YAML 1.1 reads an unquoted ``12:00:00`` as the base-60 integer 43200;
    settings are text, so the typed accessors must see ``12:00:00``.
    """


for _tag in ("int", "float", "timestamp"):
    TextScalarLoader.add_constructor(
        f"tag:yaml.org,2002:{_tag}", yaml.SafeLoader.construct_scalar
    )


def parse_duration(text: str) -> timedelta:
    """Parse a TimeSpan-style duration.

    Accepts ``d`` (whole days), ``hh:mm``, ``hh:mm:ss``, ``d.hh:mm:ss`` and
    ``d.hh:mm:ss.fffffff``, optionally prefixed with ``-``.

    Raises:
        ValueError: text is not a duration or a component is out of range
    """
    text = text.strip()
    if re.fullmatch(r"-?\d+", text):
        return timedelta(days=int(text))

    m = _DURATION_RE.match(text)
    if not m:
        raise ValueError(f"invalid duration: {text!r}")

    hours = int(m.group("hours"))
    minutes = int(m.group("minutes"))
    seconds = int(m.group("seconds") or 0)
    if hours > 23 or minutes > 59 or seconds > 59:
        raise ValueError(f"duration component out of range: {text!r}")

    fraction = m.group("fraction") or ""
    # fraction is in 100ns ticks when padded to 7 digits
    microseconds = int(fraction.ljust(7, "0")) // 10 if fraction else 0

    result = timedelta(
        days=int(m.group("days") or 0),
        hours=hours,
        minutes=minutes,
        seconds=seconds,
        microseconds=microseconds,
    )
    return -result if m.group("sign") else result


@dataclass(frozen=True)
class ConfigSnapshot:
    """One immutable load of the configuration.

    Attributes:
        values: Settings by lower-cased key
        expressions: Raw expression group mappings from the file
        expressions_supported: Whether the platform can use expression groups
    """

    values: Mapping[str, str] = field(default_factory=dict)
    expressions: tuple[Mapping[str, Any], ...] = ()
    expressions_supported: bool = False

    @classmethod
    def from_mapping(
        cls,
        settings: Mapping[str, Any],
        expressions: list | tuple = (),
        expressions_supported: bool = False,
    ) -> "ConfigSnapshot":
        """Build a snapshot from a settings mapping (keys are case-insensitive)."""
        values = {}
        for key, value in settings.items():
            if isinstance(value, (dict, list)):
                raise ConfigError(f"setting {key!r} must be a scalar, got {type(value).__name__}")
            values[str(key).lower()] = "" if value is None else str(value)
        return cls(
            values=MappingProxyType(values),
            expressions=tuple(expressions),
            expressions_supported=expressions_supported,
        )

    def get_str(self, key: str, default: str | None = "") -> str | None:
        return self.values.get(key.lower(), default)

    def get_int(self, key: str, default: int) -> int:
        value = self.values.get(key.lower())
        if value is None:
            return default
        try:
            return int(value.strip())
        except ValueError:
            logger.warning(f"Setting {key}={value!r} is not an integer, using {default}")
            return default

    def get_bool(self, key: str, default: bool) -> bool:
        value = self.values.get(key.lower())
        if value is None:
            return default
        normalized = value.strip().lower()
        if normalized == "true":
            return True
        if normalized == "false":
            return False
        logger.warning(f"Setting {key}={value!r} is not a boolean, using {default}")
        return default

    def get_duration(self, key: str, default: timedelta) -> timedelta:
        value = self.values.get(key.lower())
        if value is None:
            return default
        try:
            return parse_duration(value)
        except ValueError:
            logger.warning(f"Setting {key}={value!r} is not a duration, using {default}")
            return default

    # Raw list text

    @property
    def whitelist(self) -> str:
        return self.get_str(WHITELIST_KEY)

    @property
    def whitelist_regex(self) -> str:
        return self.get_str(WHITELIST_REGEX_KEY)

    @property
    def blacklist(self) -> str:
        return self.get_str(BLACKLIST_KEY)

    @property
    def blacklist_regex(self) -> str:
        return self.get_str(BLACKLIST_REGEX_KEY)

    @property
    def user_name_whitelist(self) -> str:
        return self.get_str(USER_NAME_WHITELIST_KEY)

    @property
    def user_name_max_edit_distance(self) -> int:
        return self.get_int(USER_NAME_EDIT_DISTANCE_KEY, DEFAULT_MAX_EDIT_DISTANCE)


@dataclass(frozen=True)
class ExpressionGroup:
    """Compiled expressions for one event log keyword mask."""

    keywords: int
    patterns: tuple[re.Pattern, ...]


def parse_firewall_types(text: str) -> dict[str, str]:
    """Parse ``os:type`` pairs, e.g. ``Windows:Windows,Linux:IPTables``.

    Pairs without exactly one colon are ignored.
    """
    result = {}
    for pair in text.split(","):
        pieces = pair.strip().split(":")
        if len(pieces) == 2 and pieces[0] and pieces[1]:
            result[pieces[0].lower()] = pieces[1]
    return result


def load_expression_groups(snapshot: ConfigSnapshot) -> tuple[ExpressionGroup, ...]:
    """Compile expression groups, empty when the platform does not support them.

    Raises:
        ConfigError: a group is not a mapping or has invalid keywords
        PatternError: an expression does not compile
    """
    if not snapshot.expressions_supported:
        return ()

    groups = []
    for i, raw in enumerate(snapshot.expressions):
        if not isinstance(raw, Mapping):
            raise ConfigError(f"expression group {i} must be a mapping")
        try:
            keywords = int(str(raw.get("keywords", 0)), 0)
        except ValueError as e:
            raise ConfigError(f"expression group {i} has invalid keywords: {e}") from e
        patterns = raw.get("patterns") or []
        if isinstance(patterns, str):
            patterns = [patterns]
        compiled = (compile_expression(text) for text in patterns)
        groups.append(
            ExpressionGroup(
                keywords=keywords,
                patterns=tuple(p for p in compiled if p is not None),
            )
        )
    return tuple(groups)


@dataclass(frozen=True)
class Settings:
    """Typed view of the scalar settings of the ban service."""

    failed_login_attempts_before_ban: int = 5
    ban_time: timedelta = timedelta(days=1)
    expire_time: timedelta = timedelta(days=1)
    cycle_time: timedelta = timedelta(minutes=1)
    minimum_time_between_failed_login_attempts: timedelta = timedelta(seconds=5)
    firewall_rule_prefix: str = "IPBan_"
    clear_banned_ip_addresses_on_restart: bool = False
    create_whitelist_firewall_rule: bool = False
    user_name_whitelist_max_edit_distance: int = DEFAULT_MAX_EDIT_DISTANCE
    failed_login_attempts_before_ban_user_name_whitelist: int = 20
    firewall_types: Mapping[str, str] = field(default_factory=dict)
    process_to_run_on_ban: str = ""
    get_url_update: str = ""
    get_url_start: str = ""
    get_url_stop: str = ""
    get_url_config: str = ""
    external_ip_address_url: str = ""
    expression_groups: tuple[ExpressionGroup, ...] = ()

    @classmethod
    def from_snapshot(cls, snapshot: ConfigSnapshot) -> "Settings":
        d = cls()
        return cls(
            failed_login_attempts_before_ban=snapshot.get_int(
                "FailedLoginAttemptsBeforeBan", d.failed_login_attempts_before_ban
            ),
            ban_time=snapshot.get_duration("BanTime", d.ban_time),
            expire_time=snapshot.get_duration("ExpireTime", d.expire_time),
            cycle_time=snapshot.get_duration("CycleTime", d.cycle_time),
            minimum_time_between_failed_login_attempts=snapshot.get_duration(
                "MinimumTimeBetweenFailedLoginAttempts",
                d.minimum_time_between_failed_login_attempts,
            ),
            firewall_rule_prefix=snapshot.get_str("FirewallRulePrefix", d.firewall_rule_prefix),
            clear_banned_ip_addresses_on_restart=snapshot.get_bool(
                "ClearBannedIPAddressesOnRestart", d.clear_banned_ip_addresses_on_restart
            ),
            create_whitelist_firewall_rule=snapshot.get_bool(
                "CreateWhitelistFirewallRule", d.create_whitelist_firewall_rule
            ),
            user_name_whitelist_max_edit_distance=snapshot.user_name_max_edit_distance,
            failed_login_attempts_before_ban_user_name_whitelist=snapshot.get_int(
                "FailedLoginAttemptsBeforeBanUserNameWhitelist",
                d.failed_login_attempts_before_ban_user_name_whitelist,
            ),
            firewall_types=MappingProxyType(
                parse_firewall_types(snapshot.get_str("FirewallType"))
            ),
            process_to_run_on_ban=snapshot.get_str("ProcessToRunOnBan"),
            get_url_update=snapshot.get_str("GetUrlUpdate"),
            get_url_start=snapshot.get_str("GetUrlStart"),
            get_url_stop=snapshot.get_str("GetUrlStop"),
            get_url_config=snapshot.get_str("GetUrlConfig"),
            external_ip_address_url=snapshot.get_str("ExternalIPAddressUrl"),
            expression_groups=load_expression_groups(snapshot),
        )

    def firewall_type_for(self, os_name: str) -> str | None:
        """Firewall implementation configured for an OS name (case-insensitive)."""
        return self.firewall_types.get(os_name.lower())

    def groups_matching_keywords(self, keywords: int) -> list[ExpressionGroup]:
        """Expression groups whose keyword mask equals keywords."""
        return [g for g in self.expression_groups if g.keywords == keywords]


def parse_config(data: Any, expressions_supported: bool = False) -> ConfigSnapshot:
    """Build a snapshot from the parsed YAML document.

    Raises:
        ConfigError: the document or its sections have the wrong shape
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("configuration must be a YAML mapping")

    settings = data.get("settings") or {}
    if not isinstance(settings, dict):
        raise ConfigError("'settings' must be a mapping")

    expressions = data.get("expressions") or []
    if not isinstance(expressions, list):
        raise ConfigError("'expressions' must be a list")

    return ConfigSnapshot.from_mapping(
        settings,
        expressions=expressions,
        expressions_supported=expressions_supported,
    )


def load_config(
    path: str | Path | None = None, expressions_supported: bool = False
) -> ConfigSnapshot:
    """Load a configuration file (default: $IPBAN_CONFIG or ipban.yaml).

    Raises:
        FileNotFoundError: the file does not exist
        yaml.YAMLError: the file is not valid YAML
        ConfigError: the document has the wrong shape
    """
    path = Path(path or DEFAULT_CONFIG_PATH)
    with open(path) as f:
        data = yaml.load(f, Loader=TextScalarLoader)
    snapshot = parse_config(data, expressions_supported=expressions_supported)
    logger.info(f"Loaded configuration from {path} ({len(snapshot.values)} settings)")
    return snapshot
