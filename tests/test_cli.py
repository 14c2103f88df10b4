# Copyright (c) 2025 Kenneth Stott
#
# This source code is licensed under the Business Source License 1.1
# found in the LICENSE file in the root directory of this source tree.
#
# NOTICE: Use of this software for training artificial intelligence or
# machine learning models is strictly prohibited without explicit written
# permission from the copyright holder.

"""Tests for the hostfacts CLI.

These tests use Click's CliRunner and point the command at temporary
external/custom fact directories so output does not depend on the host.
"""

import json
import logging

import pytest
import yaml
from click.testing import CliRunner

import hostfacts
from hostfacts.cli import cli, configure_logging
from hostfacts.core.config import LoggingConfig


@pytest.fixture
def runner():
    """Create a CLI runner."""
    return CliRunner()


@pytest.fixture
def fact_dirs(tmp_path, write_file):
    """External and custom fact directories with known facts."""
    write_file("external/site.yaml", """
        datacenter: ams1
        os_info:
          release:
            major: "22"
          tags: [web, prod]
    """)
    write_file("custom/role.py", """
        facts.add("role", value="webserver")
        facts.add("cores", value=8)
    """)
    return tmp_path / "external", tmp_path / "custom"


def _args(fact_dirs, *extra):
    external, custom = fact_dirs
    return ["--external-dir", str(external), "--custom-dir", str(custom), *extra]


class TestQueries:
    """Tests for fact queries."""

    def test_single_query_prints_value(self, runner, fact_dirs):
        """Test a single query prints only the value."""
        result = runner.invoke(cli, _args(fact_dirs, "role"))
        assert result.exit_code == 0
        assert result.output.strip() == "webserver"

    def test_dotted_query(self, runner, fact_dirs):
        """Test dotted paths walk structured facts."""
        result = runner.invoke(cli, _args(fact_dirs, "os_info.release.major", "os_info.tags.1"))
        assert result.exit_code == 0
        assert 'os_info.release.major => 22' in result.output
        assert 'os_info.tags.1 => prod' in result.output

    def test_structured_value_rendering(self, runner, fact_dirs):
        """Test maps render with => and quoted strings."""
        result = runner.invoke(cli, _args(fact_dirs, "os_info"))
        assert result.exit_code == 0
        assert 'major => "22"' in result.output
        assert '"web"' in result.output

    def test_missing_fact(self, runner, fact_dirs):
        """Test absent facts print nothing but do not fail."""
        result = runner.invoke(cli, _args(fact_dirs, "no_such_fact"))
        assert result.exit_code == 0
        assert result.output.strip() == ""

    def test_no_custom_facts(self, runner, fact_dirs):
        """Test --no-custom-facts skips custom directories."""
        result = runner.invoke(cli, _args(fact_dirs, "--no-custom-facts", "role", "datacenter"))
        assert result.exit_code == 0
        assert "datacenter => ams1" in result.output
        assert "role =>" in result.output
        assert "webserver" not in result.output


class TestOutputFormats:
    """Tests for --json and --yaml."""

    def test_json(self, runner, fact_dirs):
        """Test JSON output of queried facts."""
        result = runner.invoke(cli, _args(fact_dirs, "--json", "role", "cores", "os_info.tags"))
        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "role": "webserver",
            "cores": 8,
            "os_info.tags": ["web", "prod"],
        }

    def test_yaml(self, runner, fact_dirs):
        """Test YAML output of queried facts."""
        result = runner.invoke(cli, _args(fact_dirs, "--yaml", "datacenter", "missing"))
        assert result.exit_code == 0
        assert yaml.safe_load(result.output) == {"datacenter": "ams1", "missing": None}

    def test_all_facts_json(self, runner, fact_dirs):
        """Test no query resolves every known fact."""
        result = runner.invoke(cli, _args(fact_dirs, "--json"))
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["role"] == "webserver"
        assert data["datacenter"] == "ams1"
        assert data["hostfactsversion"] == hostfacts.__version__

    def test_json_and_yaml_exclusive(self, runner, fact_dirs):
        """Test the two formats cannot be combined."""
        result = runner.invoke(cli, _args(fact_dirs, "--json", "--yaml"))
        assert result.exit_code != 0
        assert "mutually exclusive" in result.output


class TestConfigOption:
    """Tests for --config."""

    def test_config_file(self, runner, write_file, tmp_path):
        """Test facts and directories come from the config file."""
        path = write_file("hostfacts.yaml", """
            facts:
              owner: ops
        """)
        result = runner.invoke(cli, ["-c", str(path), "owner"])
        assert result.exit_code == 0
        assert result.output.strip() == "ops"

    def test_config_error(self, runner, write_file, monkeypatch):
        """Test config errors are reported with exit code 1."""
        monkeypatch.delenv("HOSTFACTS_UNSET", raising=False)
        path = write_file("bad.yaml", "facts:\n  owner: ${HOSTFACTS_UNSET}\n")
        result = runner.invoke(cli, ["-c", str(path)])
        assert result.exit_code == 1
        assert "Config error" in result.output

    def test_missing_config(self, runner, tmp_path):
        """Test a nonexistent config path is a usage error."""
        result = runner.invoke(cli, ["-c", str(tmp_path / "nope.yaml")])
        assert result.exit_code != 0


class TestMisc:
    """Tests for version and logging setup."""

    def test_version(self, runner):
        """Test --version prints the package version."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert hostfacts.__version__ in result.output

    def test_configure_logging_replaces_handlers(self, tmp_path):
        """Test repeated configuration does not stack handlers."""
        log_file = tmp_path / "logs" / "hostfacts.log"
        configure_logging(LoggingConfig(level="INFO", file=str(log_file)))
        configure_logging(LoggingConfig(level="INFO", file=str(log_file)), debug=True)

        package_logger = logging.getLogger("hostfacts")
        installed = [h for h in package_logger.handlers if getattr(h, "_hostfacts_cli", False)]
        assert len(installed) == 2
        assert package_logger.level == logging.DEBUG

        logging.getLogger("hostfacts.test").debug("written to file")
        for handler in installed:
            handler.flush()
        assert "hostfacts.test - DEBUG - written to file" in log_file.read_text()
