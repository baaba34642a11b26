"""
Configuration schema and loader.

This module defines dataclasses that mirror the expected structure of
the YAML configuration file (`config.yaml`).  A helper function
`load_config()` reads a YAML file from disk and returns an instance
of `Config` populated with defaults for any missing fields.

`RiskConfig` is also the value object the simulation core receives on
every tick, so it is kept small and free of loader concerns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Any
import yaml


@dataclass(frozen=True)
class RiskConfig:
    """Risk budget applied by the risk manager.

    Attributes
    ----------
    risk_per_trade_percent : float
        Percentage of account equity risked on a single trade.
    daily_loss_limit_percent : float
        Percentage of equity that may be lost in one UTC day before new
        trades are blocked.  ``0`` disables the check.
    max_trades_per_day : int
        Maximum number of trades opened per UTC day.  ``0`` means no cap.
    cooldown_minutes_after_loss : int
        Reserved.  Carried through configuration but not enforced.
    live_trading_enabled : bool
        When ``False`` the engine runs as pure paper and the daily limits
        are not enforced.
    """

    risk_per_trade_percent: float = 1.0
    daily_loss_limit_percent: float = 3.0
    max_trades_per_day: int = 5
    cooldown_minutes_after_loss: int = 0
    live_trading_enabled: bool = False


@dataclass
class AccountConfig:
    """Starting account used by the backtest and paper drivers.

    Attributes
    ----------
    initial_equity_myr : float
        Total equity in the quote currency at the start of the session.
    free_balance_myr : float
        Free quote balance at the start.  Defaults to the full equity when
        left at ``None``.
    """

    initial_equity_myr: float = 10_000.0
    free_balance_myr: float | None = None


@dataclass
class DataConfig:
    """Data source configuration.

    Attributes
    ----------
    csv_path : str
        CSV file of historical candles replayed in backtest mode.
    """

    csv_path: str = "data/XBTMYR.csv"


@dataclass
class PaperConfig:
    """Settings for the periodic paper-trading loop.

    Attributes
    ----------
    poll_seconds : float
        Delay between two ticks.
    start_price : float
        Starting price of the random-walk feed.
    volatility_pct : float
        Standard deviation of each step of the random walk, in percent.
    seed : int or None
        Seed for the random walk.  ``None`` gives a different path each run.
    """

    poll_seconds: float = 60.0
    start_price: float = 250_000.0
    volatility_pct: float = 0.3
    seed: int | None = None


@dataclass
class Config:
    """Root configuration for the paper trader.

    Attributes
    ----------
    pair : str
        Market traded by the simulation (e.g. ``"XBTMYR"``).
    currency : str
        Account currency used in narratives and reports.
    history_limit : int
        Number of candles retained by the run coordinator.
    risk : RiskConfig
        Risk budget.
    account : AccountConfig
        Starting account.
    data : DataConfig
        Data source configuration.
    paper : PaperConfig
        Paper loop configuration.
    mode : str
        Operating mode: ``backtest`` or ``paper``.
    """

    pair: str = "XBTMYR"
    currency: str = "MYR"
    history_limit: int = 500
    risk: RiskConfig = field(default_factory=RiskConfig)
    account: AccountConfig = field(default_factory=AccountConfig)
    data: DataConfig = field(default_factory=DataConfig)
    paper: PaperConfig = field(default_factory=PaperConfig)
    mode: str = "backtest"


def _merge_dict(defaults: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge two dictionaries.

    The values in `override` take precedence over those in `defaults`.
    This helper is used when loading YAML into nested dataclasses.
    """
    result: Dict[str, Any] = defaults.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_dict(result[key], value)
        else:
            result[key] = value
    return result


def load_config(path: str) -> Config:
    """Load a configuration file from the given YAML path.

    Parameters
    ----------
    path : str
        Path to the YAML file.

    Returns
    -------
    Config
        A populated configuration object.  Missing fields are filled with
        the defaults defined in the dataclasses.

    Raises
    ------
    ValueError
        If the file does not contain a YAML mapping or a value has the
        wrong type.
    """
    with open(path, "r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping, got {type(raw).__name__}")

    defaults: Dict[str, Any] = {
        'pair': "XBTMYR",
        'currency': "MYR",
        'history_limit': 500,
        'risk': {
            'risk_per_trade_percent': 1.0,
            'daily_loss_limit_percent': 3.0,
            'max_trades_per_day': 5,
            'cooldown_minutes_after_loss': 0,
            'live_trading_enabled': False,
        },
        'account': {
            'initial_equity_myr': 10_000.0,
            'free_balance_myr': None,
        },
        'data': {
            'csv_path': "data/XBTMYR.csv",
        },
        'paper': {
            'poll_seconds': 60.0,
            'start_price': 250_000.0,
            'volatility_pct': 0.3,
            'seed': None,
        },
        'mode': 'backtest',
    }

    merged = _merge_dict(defaults, raw)

    try:
        risk = merged['risk']
        risk_cfg = RiskConfig(
            risk_per_trade_percent=float(risk['risk_per_trade_percent']),
            daily_loss_limit_percent=float(risk['daily_loss_limit_percent']),
            max_trades_per_day=int(risk['max_trades_per_day']),
            cooldown_minutes_after_loss=int(risk['cooldown_minutes_after_loss']),
            live_trading_enabled=bool(risk['live_trading_enabled']),
        )
        account = merged['account']
        free_balance = account.get('free_balance_myr')
        account_cfg = AccountConfig(
            initial_equity_myr=float(account['initial_equity_myr']),
            free_balance_myr=None if free_balance is None else float(free_balance),
        )
        data_cfg = DataConfig(**merged['data'])
        paper = merged['paper']
        seed = paper.get('seed')
        paper_cfg = PaperConfig(
            poll_seconds=float(paper['poll_seconds']),
            start_price=float(paper['start_price']),
            volatility_pct=float(paper['volatility_pct']),
            seed=None if seed is None else int(seed),
        )
        cfg = Config(
            pair=str(merged.get('pair', 'XBTMYR')).upper(),
            currency=str(merged.get('currency', 'MYR')).upper(),
            history_limit=int(merged.get('history_limit', 500)),
            risk=risk_cfg,
            account=account_cfg,
            data=data_cfg,
            paper=paper_cfg,
            mode=str(merged.get('mode', 'backtest')).lower(),
        )
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid configuration in {path}: {exc}") from exc
    return cfg
