# tests/test_cli.py

import json

import msgspec
import pytest
from click.testing import CliRunner

from apollo.cli.__main__ import cli
from apollo.core import ApolloSettings
from apollo.types import Chain

from conftest import OWNER, USDC, make_result


SCHEMA = f"""
    block_interval: 10
    query:
      transfers:
        chain: ethereum
        contract:
          - address: "{USDC}"
            abi: erc20.json
            method:
              balanceOf:
                outputs: [balance]
            transform:
              doubled: "${{amount * 2}}"
        save:
          doubled: "${{doubled}}"
          owner: "${{owner}}"
        filter:
          - "${{doubled > 50}}"
"""


@pytest.fixture
def runner():
    return CliRunner()


def json_lines(output):
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


def test_check_lists_queries(runner, make_config):
    conf_dir = make_config(SCHEMA)
    result = runner.invoke(cli, ["--config-dir", str(conf_dir), "check", "--realtime"])
    assert result.exit_code == 0, result.output
    assert "Schema valid (realtime)" in result.output
    assert "transfers [ethereum]" in result.output
    assert USDC in result.output


def test_check_reports_validation_error(runner, make_config):
    conf_dir = make_config(SCHEMA.replace("block_interval: 10", "start_block: 1\n    end_block: 9"))
    result = runner.invoke(cli, ["--config-dir", str(conf_dir), "check"])
    assert result.exit_code != 0
    assert "no interval defined for historical method calls" in result.output


def test_check_reports_load_error(runner, tmp_path):
    result = runner.invoke(cli, ["--config-dir", str(tmp_path), "check"])
    assert result.exit_code != 0
    assert "Failed to load schema" in result.output


def test_eval_prints_kept_outputs(runner, make_config, tmp_path_factory):
    conf_dir = make_config(SCHEMA)
    results = [
        make_result(inputs={"amount": 42}),
        make_result(inputs={"amount": 1}),
        make_result(query_name="unknown"),
    ]
    results_file = tmp_path_factory.mktemp("results") / "results.json"
    results_file.write_bytes(msgspec.json.encode(results))

    result = runner.invoke(cli, ["--config-dir", str(conf_dir), "eval", str(results_file)])
    assert result.exit_code == 0, result.output

    lines = json_lines(result.output)
    assert lines == [{
        "query_name": "transfers",
        "block_number": 150,
        "output": {"doubled": 84, "owner": OWNER},
    }]


def test_eval_reports_failures(runner, make_config, tmp_path_factory):
    conf_dir = make_config(SCHEMA)
    results_file = tmp_path_factory.mktemp("results") / "results.json"
    results_file.write_bytes(msgspec.json.encode([make_result(inputs={"amount": "x"})]))

    result = runner.invoke(cli, ["--config-dir", str(conf_dir), "eval", str(results_file)])
    assert result.exit_code != 0
    assert "1 of 1 results failed" in result.output


def test_settings_from_env(tmp_path):
    settings = ApolloSettings.from_env({
        "APOLLO_CONFIG_DIR": str(tmp_path),
        "APOLLO_LOG_LEVEL": "DEBUG",
        "APOLLO_RPC_ARBITRUM": "http://localhost:8545",
    })
    assert settings.config_dir == tmp_path
    assert settings.schema_path == tmp_path / "schema.yaml"
    assert settings.log_level == "DEBUG"
    assert settings.log_dir is None
    assert settings.rpc_urls == {Chain.ARBITRUM: "http://localhost:8545"}


def test_settings_overrides(tmp_path):
    settings = ApolloSettings.from_env({}, config_dir=tmp_path, log_level=None)
    assert settings.config_dir == tmp_path
    assert settings.log_level == "INFO"
