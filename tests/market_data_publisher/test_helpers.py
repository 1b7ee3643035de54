import json
from io import StringIO
from pathlib import Path

import pytest
from pytest_mock import MockerFixture

from common.logging_adapter import KeyValContextLogger
from market_data_publisher.entities import QUERY_REJECTED, Config, Domain, InstrumentRecord, QueryResult
from market_data_publisher.helpers import (format_query_result, get_configured_logger, load_publisher_config,
                                           parse_finite, parse_instrument_id)


@pytest.mark.parametrize("token,expected", [("0", 0), ("5", 5), ("005", 5), ("1500", 1500), ("+7", 7)])
def test_parse_instrument_id(token, expected):
    assert parse_instrument_id(token) == expected


@pytest.mark.parametrize("token", ["-1", "1.5", "abc", ""])
def test_parse_instrument_id_invalid(token):
    with pytest.raises(ValueError):
        parse_instrument_id(token)


@pytest.mark.parametrize("token,expected", [("100.0", 100.0), ("2000", 2000.0), ("-0.5", -0.5), ("1e3", 1000.0)])
def test_parse_finite(token, expected):
    assert parse_finite(token) == expected


@pytest.mark.parametrize("token", ["nan", "inf", "-inf", "1e400", "abc"])
def test_parse_finite_invalid(token):
    with pytest.raises(ValueError):
        parse_finite(token)


@pytest.mark.parametrize(
    "type_tag,subscriber_id,instrument_id,result,expected",
    [
        ("P", "A1", 5, QueryResult(True, InstrumentRecord(100.0, 2000.0, Domain.EQUITY)),
         "P,A1,5,100.000000,2000.000000"),
        ("F", "B1", 1500, QueryResult(True, InstrumentRecord(98.5, 3.25, Domain.BOND)),
         "F,B1,1500,98.500000,3.250000"),
        ("P", "A1", 5, QUERY_REJECTED, "P,A1,5,invalid_request"),
        ("Q", "X", 2500, QUERY_REJECTED, "Q,X,2500,invalid_request"),
    ]
)
def test_format_query_result(type_tag, subscriber_id, instrument_id, result, expected):
    assert format_query_result(type_tag, subscriber_id, instrument_id, result) == expected


@pytest.fixture
def publisher_config():
    return {
        "free_quota": 3,
        "instruments": {
            "equity": [0, 500],
            "bond": [500, 700]
        }
    }


@pytest.fixture
def log_config():
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(message)s"
            }
        },
        "handlers": {
            "default": {
                "level": "INFO",
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stderr"
            }
        },
        "loggers": {
            "test": {
                "handlers": ["default"],
                "level": "INFO",
                "propagate": False
            }
        }
    }


def test_load_publisher_config(publisher_config, mocker: MockerFixture):
    mocker.patch("builtins.open").return_value = StringIO(json.dumps(publisher_config))
    actual = load_publisher_config("anypath")
    assert isinstance(actual, Config)
    assert actual.free_quota == 3
    assert actual.equity_ids == range(0, 500)
    assert actual.bond_ids == range(500, 700)


def test_load_publisher_config_defaults(mocker: MockerFixture):
    mocker.patch("builtins.open").return_value = StringIO("{}")
    assert load_publisher_config("anypath") == Config()


@pytest.mark.parametrize(
    "config_json,message",
    [
        ({"free_quota": -1}, "Negative free quota: -1"),
        ({"instruments": {"equity": [0, 1500]}}, "Equity range must lie below bond range: "
                                                 "range(0, 1500) range(1000, 2000)"),
        ({"instruments": {"bond": [10, 10]}}, "Invalid instrument range for bond: [10, 10)"),
        ({"instruments": {"equity": [0]}}, "Instrument range must be [low, high]: equity"),
    ]
)
def test_load_publisher_config_invalid(config_json, message, mocker: MockerFixture):
    mocker.patch("builtins.open").return_value = StringIO(json.dumps(config_json))
    with pytest.raises(ValueError) as e_info:
        load_publisher_config("anypath")
    assert e_info.value.args[0] == message


def test_get_configured_logger_failure(log_config, mocker: MockerFixture):
    mocker.patch("builtins.open").return_value = StringIO(json.dumps(log_config))
    with pytest.raises(ValueError) as e_info:
        get_configured_logger("any_logger", "any/path.json")
    assert e_info.value.args[0] == 'Logger not configured in any/path.json: any_logger'


def test_get_configured_logger_success(log_config, mocker: MockerFixture):
    mocker.patch("builtins.open").return_value = StringIO(json.dumps(log_config))
    config_patch = mocker.patch("market_data_publisher.helpers.logging.config.dictConfig")
    logger_patch = mocker.patch("market_data_publisher.helpers.logging.getLogger")
    logger_patch.return_value = mocker.MagicMock()

    actual = get_configured_logger("test", "any/path.json", command_no=0)
    assert config_patch.call_args[0][0] == log_config
    assert isinstance(actual, KeyValContextLogger)
    assert actual.logger is logger_patch.return_value
    assert actual.extra == {"command_no": 0}


def test_default_logging_config_has_processor_logger():
    config_path = Path(__file__).resolve().parents[2] / "config" / "logging_dict_config.json"
    with open(config_path, encoding="utf-8") as fp:
        config_json = json.load(fp)
    assert "CommandProcessor" in config_json["loggers"]
    assert config_json["handlers"]["stderr"]["stream"] == "ext://sys.stderr"
