"""Tests for the CDK app entry point.

Each test runs app.py in a fresh interpreter, the way ``cdk synth`` does,
passing context through CDK_CONTEXT_JSON and collecting the cloud assembly
from CDK_OUTDIR.
"""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
APP = PROJECT_ROOT / "app.py"
STACK_NAME = "AppTestStack"


@pytest.fixture
def run_app(temp_dir: Path):
    """Run app.py with the given CDK context and return (result, outdir)."""

    def _run(context: dict, **extra_env: str) -> tuple[subprocess.CompletedProcess, Path]:
        outdir = temp_dir / "cdk.out"
        env = {
            **os.environ,
            "CDK_CONTEXT_JSON": json.dumps(context),
            "CDK_OUTDIR": str(outdir),
            "STACK_NAME": STACK_NAME,
            "ENVIRONMENT": "testing",
            "PYTHONPATH": os.pathsep.join(
                filter(None, [str(PROJECT_ROOT / "src"), os.environ.get("PYTHONPATH")])
            ),
            **extra_env,
        }
        result = subprocess.run(
            [sys.executable, str(APP)],
            cwd=PROJECT_ROOT,
            env=env,
            capture_output=True,
            text=True,
            timeout=300,
        )
        return result, outdir

    return _run


def _template(outdir: Path) -> dict:
    return json.loads((outdir / f"{STACK_NAME}.template.json").read_text())


class TestApp:
    """Test suite for app.py."""

    def test_static_file_profile_synthesizes(self, run_app, write_param_file) -> None:
        """Test that a ParamFile selects the static-file profile."""
        path = write_param_file(
            "url: https://example.test/ingest\n"
            "includeFilters: [AWS/EC2]\n"
        )

        result, outdir = run_app({"ParamFile": str(path)})

        assert result.returncode == 0, result.stderr
        template = _template(outdir)
        assert "ExternalUrl" not in template.get("Parameters", {})
        streams = [
            r for r in template["Resources"].values() if r["Type"] == "AWS::KinesisFirehose::DeliveryStream"
        ]
        assert len(streams) == 1
        destination = streams[0]["Properties"]["HttpEndpointDestinationConfiguration"]
        assert destination["EndpointConfiguration"]["Url"] == "https://example.test/ingest"

    def test_parameter_profile_synthesizes(self, run_app) -> None:
        """Test that no ParamFile selects the deployment-parameter profile."""
        result, outdir = run_app({})

        assert result.returncode == 0, result.stderr
        template = _template(outdir)
        assert template["Parameters"]["ExternalUrl"]["Type"] == "String"

    def test_tags_applied(self, run_app) -> None:
        """Test that settings tags are applied to the stack's resources."""
        result, outdir = run_app({})

        assert result.returncode == 0, result.stderr
        bucket = next(
            r for r in _template(outdir)["Resources"].values() if r["Type"] == "AWS::S3::Bucket"
        )
        assert {"Key": "Project", "Value": "opswatch-metric-stream"} in bucket["Properties"]["Tags"]

    def test_missing_param_file_exits_1(self, run_app, temp_dir: Path) -> None:
        """Test that a missing parameter file aborts the build."""
        result, outdir = run_app({"ParamFile": str(temp_dir / "missing.yaml")})

        assert result.returncode == 1
        assert "Configuration Error" in result.stderr
        assert "Parameter file not found" in result.stderr
        assert not (outdir / f"{STACK_NAME}.template.json").exists()

    def test_invalid_param_file_exits_1(self, run_app, write_param_file) -> None:
        """Test that a parameter file failing validation aborts the build."""
        path = write_param_file("url: http://example.test/ingest\n")

        result, _ = run_app({"ParamFile": str(path)})

        assert result.returncode == 1
        assert "Invalid parameter file" in result.stderr

    def test_mixed_profiles_exit_1(self, run_app, write_param_file) -> None:
        """Test that ConfigSource=parameter with a ParamFile aborts the build."""
        path = write_param_file("url: https://example.test/ingest\n")

        result, _ = run_app({"ParamFile": str(path), "ConfigSource": "parameter"})

        assert result.returncode == 1
        assert "cannot be combined" in result.stderr

    def test_invalid_settings_exit_1(self, run_app) -> None:
        """Test that settings failing validation abort the build before synthesis."""
        result, outdir = run_app({}, OUTPUT_FORMAT="xml")

        assert result.returncode == 1
        assert "Settings Error" in result.stderr
        assert "output_format" in result.stderr
        assert not (outdir / f"{STACK_NAME}.template.json").exists()
