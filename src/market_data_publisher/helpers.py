"""This module holds helper functions for the market data publisher"""

import json
import logging
import logging.config
import math
from typing import Sequence

from common.logging_adapter import KeyValContextLogger
from market_data_publisher.entities import BOND_IDS, EQUITY_IDS, FREE_QUOTA, INVALID_REQUEST, Config, QueryResult

DEFAULT_LOGGING_CONFIG = "config/logging_dict_config.json"


def parse_instrument_id(token: str) -> int:
    """
    Parse an instrument id token

    :param token: str: decimal text of the id
    :returns: int: instrument id
    :raises: ValueError: if token is not a non-negative integer

    """
    instrument_id = int(token)
    if instrument_id < 0:
        raise ValueError(f"Negative instrument id: {token}")
    return instrument_id


def parse_finite(token: str) -> float:
    """
    Parse a price or metric token

    :param token: str: decimal text of the number
    :returns: float: parsed value
    :raises: ValueError: if token is not a number, or is nan or infinite

    """
    value = float(token)
    if not math.isfinite(value):
        raise ValueError(f"Non-finite number: {token}")
    return value


def format_query_result(type_tag: str, subscriber_id: str, instrument_id: int, result: QueryResult) -> str:
    """
    Render the output line of a `get_data` request:
        - success: "<TAG>,<SUBSCRIBER>,<ID>,<PRICE>,<METRIC>", both numbers with 6 decimals
        - failure: "<TAG>,<SUBSCRIBER>,<ID>,invalid_request"

    :param type_tag: str: subscriber type tag as requested in the command
    :param subscriber_id: str: subscriber identity
    :param instrument_id: int: queried instrument
    :param result: QueryResult: outcome of the query

    """
    parts = [type_tag, subscriber_id, str(instrument_id)]
    if result.success:
        parts.append(f"{result.record.last_traded_price:.6f}")
        parts.append(f"{result.record.metric:.6f}")
    else:
        parts.append(INVALID_REQUEST)
    return ",".join(parts)


def _to_range(bounds: Sequence[int], name: str) -> range:
    if len(bounds) != 2:
        raise ValueError(f"Instrument range must be [low, high]: {name}")
    low, high = int(bounds[0]), int(bounds[1])
    if not 0 <= low < high:
        raise ValueError(f"Invalid instrument range for {name}: [{low}, {high})")
    return range(low, high)


def load_publisher_config(config_path: str) -> Config:
    """
    Load config for market data publisher from given JSON file.
    Every key is optional, e.g.: {"free_quota": 100, "instruments": {"equity": [0, 1000], "bond": [1000, 2000]}}

    :param config_path: str: path to config JSON file
    :returns: Instance of Config
    :raises: ValueError: if quota is negative or instrument ranges are empty, overlapping or out of order

    """
    with open(config_path, encoding='utf-8') as fp:
        config_json = json.load(fp)
    instruments = config_json.get("instruments", {})
    equity_ids = _to_range(instruments.get("equity", [EQUITY_IDS.start, EQUITY_IDS.stop]), "equity")
    bond_ids = _to_range(instruments.get("bond", [BOND_IDS.start, BOND_IDS.stop]), "bond")
    if equity_ids.stop > bond_ids.start:
        raise ValueError(f"Equity range must lie below bond range: {equity_ids} {bond_ids}")
    free_quota = int(config_json.get("free_quota", FREE_QUOTA))
    if free_quota < 0:
        raise ValueError(f"Negative free quota: {free_quota}")
    return Config(free_quota=free_quota, equity_ids=equity_ids, bond_ids=bond_ids)


def get_configured_logger(name: str, config_path: str = DEFAULT_LOGGING_CONFIG, **context) -> KeyValContextLogger:
    """
    Create a KeyValContextLogger instance using given logger if configured in dict config JSON file

    :param name: str: name of logger in dict config
    :param config_path: str: path to JSON file containing dict config
    :param context: initial context appended to every record
    :returns: Instance of KeyValContextLogger
    :raises: ValueError: if given logger name is not configured in logging dict config

    """
    with open(config_path, encoding='utf-8') as fp:
        config_json = json.load(fp)
    if name not in config_json["loggers"]:
        raise ValueError(f"Logger not configured in {config_path}: {name}")
    logging.config.dictConfig(config_json)
    return KeyValContextLogger(logging.getLogger(name), **context)
