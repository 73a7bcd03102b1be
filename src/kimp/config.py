"""Configuration system using pydantic-settings with environment variable loading."""

from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreSettings(BaseSettings):
    """Blob store connection and object key names."""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    backend: Literal["supabase", "memory"] = "supabase"
    url: str = ""
    api_key: SecretStr = SecretStr("")
    bucket: str = "rate-history"
    timeout: float = 10.0

    # Object keys inside the bucket
    rate_key: str = "rate-history.json"
    domestic_key: str = "domestic-history.json"
    international_key: str = "international-history.json"
    premium_key: str = "kimchi-premium.json"
    threshold_key: str = "premium-thresholds.json"
    strategy_key: str = "analyze-strategy.json"
    prompt_key: str = "analysis-prompt.txt"


class SourceSettings(BaseSettings):
    """Upstream data sources for prices and the conversion rate."""

    model_config = SettingsConfigDict(env_prefix="SOURCE_")

    domestic_exchange: str = "upbit"
    domestic_symbol: str = "BTC/KRW"
    international_exchange: str = "bybit"
    international_symbol: str = "BTC/USDT"
    rate_url: str = (
        "https://finance.naver.com/marketindex/exchangeDailyQuote.naver"
        "?marketindexCd=FX_USDKRW"
    )
    rate_max_pages: int = 100
    lookback_days: int = 30
    timeout: float = 10.0


class ThresholdSettings(BaseSettings):
    """Signal/threshold engine parameters.

    Passed explicitly into compute_thresholds on every call. Base thresholds
    and coefficients are tunable; only the direction of each adjustment is
    fixed by the engine.
    All fields configurable via THRESHOLD_ environment variable prefix.
    """

    model_config = SettingsConfigDict(env_prefix="THRESHOLD_")

    # Moving average / trend
    window_size: int = 5

    # Base band (premium %)
    base_buy: float = 0.5
    base_sell: float = 2.5

    # Trend nudges
    buy_trend_coefficient: float = 0.3
    sell_trend_coefficient: float = 0.3

    # Loose bounds relative to the base, applied before the rate-of-change clamp
    min_factor: float = 0.2
    max_factor: float = 5.0

    # Max relative change vs the prior day's threshold
    max_change_rate: float = 0.3

    # Composite technical overlay
    overlay_min_history: int = 20
    macd_fast: int = 6
    macd_slow: int = 13
    macd_signal: int = 4
    rsi_period: int = 14
    rsi_oversold: float = 30.0
    rsi_overbought: float = 70.0
    band_period: int = 20
    band_k: float = 2.0
    ma_short: int = 5
    ma_long: int = 20

    # Composite weights (sum to ~1.0)
    weight_macd: float = 0.3
    weight_rsi: float = 0.25
    weight_band: float = 0.25
    weight_ma: float = 0.2

    adjustment_factor: float = 0.1  # premium % shift at full-strength signal
    volatility_reference: float = 2.0  # band width (premium %) that maps to factor 1.0
    volatility_min: float = 0.5
    volatility_max: float = 2.0


class StrategySettings(BaseSettings):
    """LLM strategy generation settings."""

    model_config = SettingsConfigDict(env_prefix="STRATEGY_")

    api_key: SecretStr = SecretStr("")
    model: str = "gpt-4o-mini"
    system_prompt: str = "You are an investment strategy analyst."
    max_tokens: int = 1000
    temperature: float = 0.4
    history_days: int = 60  # days of each series rendered into the prompt


class ScheduleSettings(BaseSettings):
    """Optional in-process scheduler replacing an external cron."""

    model_config = SettingsConfigDict(env_prefix="SCHEDULE_")

    enabled: bool = False
    interval_seconds: int = 3600


class ApiSettings(BaseSettings):
    """HTTP API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8080
    enabled: bool = True


class BacktestSettings(BaseSettings):
    """Back-test and parameter sweep configuration."""

    model_config = SettingsConfigDict(env_prefix="BACKTEST_")

    initial_capital: float = 10000.0
    max_combinations: int = 500
    top_results: int = 10


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    timezone: str = "Asia/Seoul"  # canonical zone for "today" and date keys
    store: StoreSettings = StoreSettings()
    source: SourceSettings = SourceSettings()
    threshold: ThresholdSettings = ThresholdSettings()
    strategy: StrategySettings = StrategySettings()
    schedule: ScheduleSettings = ScheduleSettings()
    api: ApiSettings = ApiSettings()
    backtest: BacktestSettings = BacktestSettings()
