import json
from pathlib import Path

from subnet_planner.main import main


CONFIG = """
vpc:
  cidr_block: 10.0.0.0/16
  az_count: 2
  region: us-west-2
subnets:
  private:
    netmask: 24
  public:
    netmask: 24
    connect_to_public_natgw: false
"""


def write_config(tmp_path: Path, text: str = CONFIG) -> Path:
    config_path = tmp_path / "subnets.yaml"
    config_path.write_text(text)
    return config_path


def test_main_writes_plan_to_output(tmp_path: Path):
    config_path = write_config(tmp_path)
    output = tmp_path / "out" / "plan.json"

    rc = main(["--config", str(config_path), "--output", str(output), "--view", "by-zone"])

    assert rc == 0
    plan = json.loads(output.read_text())
    assert plan["zones"] == ["us-west-2a", "us-west-2b"]
    assert plan["subnets"]["public"]["us-west-2b"]["ipv4_cidr"] == "10.0.3.0/24"
    assert plan["subnets"]["public"]["us-west-2b"]["attributes"] == {
        "connect_to_public_natgw": False
    }


def test_main_prints_flat_plan(tmp_path: Path, capsys):
    config_path = write_config(tmp_path)

    rc = main(["--config", str(config_path)])

    assert rc == 0
    plan = json.loads(capsys.readouterr().out)
    assert [s["cidr"] for s in plan["subnets"]] == [
        "10.0.0.0/24",
        "10.0.1.0/24",
        "10.0.2.0/24",
        "10.0.3.0/24",
    ]


def test_main_reports_allocation_errors(tmp_path: Path, caplog):
    config_path = write_config(
        tmp_path,
        """
vpc:
  cidr_block: 10.0.0.0/16
  az_count: 2
subnets:
  private:
    cidrs: [10.0.1.0/24]
  public:
    cidrs: [10.0.1.0/24]
""",
    )

    rc = main(["--config", str(config_path)])

    assert rc == 1
    assert "group 'public', zone 'a'" in caplog.text


def test_main_reports_missing_config(tmp_path: Path):
    rc = main(["--config", str(tmp_path / "missing.yaml")])

    assert rc == 1


def test_main_reports_unwritable_output(tmp_path: Path, caplog):
    config_path = write_config(tmp_path)
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")

    rc = main(["--config", str(config_path), "--output", str(blocker / "plan.json")])

    assert rc == 1
    assert "subnet planning failed" in caplog.text
