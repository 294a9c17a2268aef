"""TOML configuration loader for freshkeep."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


@dataclass
class ClaudeConfig:
    api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"


@dataclass
class GeminiConfig:
    api_key: str = ""
    model: str = "gemini-2.0-flash"


@dataclass
class OpenAIConfig:
    api_key: str = ""
    model: str = "gpt-4.1-nano"


@dataclass
class GenerationConfig:
    backend: str = "claude"
    max_attempts: int = 3
    jitter_min: float = 1.0
    jitter_max: float = 11.0
    timeout: float | None = None
    claude: ClaudeConfig = field(default_factory=ClaudeConfig)
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    openai: OpenAIConfig = field(default_factory=OpenAIConfig)


@dataclass
class NotificationConfig:
    lookahead_days: int = 7
    alert_days: int = 3
    ai_phrasing: bool = False


@dataclass
class RecipeConfig:
    min_match_score: int = 30
    suggestion_limit: int = 10
    catalog_limit: int = 50


@dataclass
class ScannerConfig:
    auto_add_confidence: float = 0.8
    default_location: str = "Refrigerator"


@dataclass
class StatsConfig:
    expiring_days: int = 3
    recent_scan_days: int = 7


@dataclass
class DatabaseConfig:
    path: str = "~/.config/freshkeep/freshkeep.db"


@dataclass
class SweeperConfig:
    enabled: bool = False
    schedule: str = "0 7 * * *"


@dataclass
class FreshkeepConfig:
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    recipes: RecipeConfig = field(default_factory=RecipeConfig)
    scanner: ScannerConfig = field(default_factory=ScannerConfig)
    stats: StatsConfig = field(default_factory=StatsConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    sweeper: SweeperConfig = field(default_factory=SweeperConfig)


def load_config(path: str | Path | None = None) -> FreshkeepConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    API keys can be overridden via environment variables.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    gen = raw.get("generation", {})
    ntf = raw.get("notifications", {})
    rcp = raw.get("recipes", {})
    scn = raw.get("scanner", {})
    sts = raw.get("stats", {})
    dbs = raw.get("database", {})
    swp = raw.get("sweeper", {})

    claude_cfg = gen.get("claude", {})
    gemini_cfg = gen.get("gemini", {})
    openai_cfg = gen.get("openai", {})

    # Resolve API keys: config file → environment variable
    claude_api_key = claude_cfg.get("api_key", "") or os.environ.get(
        "ANTHROPIC_API_KEY", ""
    )
    gemini_api_key = gemini_cfg.get("api_key", "") or os.environ.get(
        "GEMINI_API_KEY", ""
    )
    openai_api_key = openai_cfg.get("api_key", "") or os.environ.get(
        "OPENAI_API_KEY", ""
    )

    jitter_min = float(gen.get("jitter_min", 1.0))
    jitter_max = float(gen.get("jitter_max", 11.0))
    if jitter_max < jitter_min:
        raise ValueError(
            f"generation.jitter_max ({jitter_max}) must be >= jitter_min ({jitter_min})"
        )

    max_attempts = int(gen.get("max_attempts", 3))
    if max_attempts < 1:
        raise ValueError(f"generation.max_attempts must be >= 1, got {max_attempts}")

    return FreshkeepConfig(
        generation=GenerationConfig(
            backend=gen.get("backend", "claude"),
            max_attempts=max_attempts,
            jitter_min=jitter_min,
            jitter_max=jitter_max,
            timeout=gen.get("timeout"),
            claude=ClaudeConfig(
                api_key=claude_api_key,
                model=claude_cfg.get("model", "claude-sonnet-4-5-20250929"),
            ),
            gemini=GeminiConfig(
                api_key=gemini_api_key,
                model=gemini_cfg.get("model", "gemini-2.0-flash"),
            ),
            openai=OpenAIConfig(
                api_key=openai_api_key,
                model=openai_cfg.get("model", "gpt-4.1-nano"),
            ),
        ),
        notifications=NotificationConfig(
            lookahead_days=ntf.get("lookahead_days", 7),
            alert_days=ntf.get("alert_days", 3),
            ai_phrasing=ntf.get("ai_phrasing", False),
        ),
        recipes=RecipeConfig(
            min_match_score=rcp.get("min_match_score", 30),
            suggestion_limit=rcp.get("suggestion_limit", 10),
            catalog_limit=rcp.get("catalog_limit", 50),
        ),
        scanner=ScannerConfig(
            auto_add_confidence=scn.get("auto_add_confidence", 0.8),
            default_location=scn.get("default_location", "Refrigerator"),
        ),
        stats=StatsConfig(
            expiring_days=sts.get("expiring_days", 3),
            recent_scan_days=sts.get("recent_scan_days", 7),
        ),
        database=DatabaseConfig(
            path=dbs.get("path", "~/.config/freshkeep/freshkeep.db"),
        ),
        sweeper=SweeperConfig(
            enabled=swp.get("enabled", False),
            schedule=swp.get("schedule", "0 7 * * *"),
        ),
    )
