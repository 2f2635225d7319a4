import json
from collections import OrderedDict
from datetime import date
from pathlib import Path

import pytest

from drops_deployment.errors import ManifestWriteError
from drops_deployment.manifest import (
    DeploymentManifest,
    DeploymentResult,
    manifest_filepath,
    persist,
    read_manifest,
    today,
)


@pytest.fixture
def manifest():
    return DeploymentManifest(
        OrderedDict(
            [
                ("dropContract", DeploymentResult("0x1", {"txHash": "0xaa", "verified": True})),
                ("dropMetadataContract", DeploymentResult("0x2", {"verified": True})),
                ("creatorImpl", DeploymentResult("0x3", {"verified": False})),
            ]
        )
    )


class TestManifestFilepath:
    def test_path_from_date_and_network(self):
        filepath = manifest_filepath(date="2024-03-01", network_id="mainnet")
        assert filepath == Path("./deployments/2024-03-01.mainnet.json")
        assert filepath.as_posix() == "deployments/2024-03-01.mainnet.json"

    def test_same_inputs_same_path(self):
        assert manifest_filepath("2024-03-01", "sepolia") == manifest_filepath(
            "2024-03-01", "sepolia"
        )

    def test_accepts_date_objects(self):
        filepath = manifest_filepath(date=date(2024, 3, 1), network_id="goerli")
        assert filepath.name == "2024-03-01.goerli.json"

    def test_custom_deployments_dir(self, tmp_path):
        filepath = manifest_filepath("2024-03-01", "mainnet", deployments_dir=tmp_path)
        assert filepath == tmp_path / "2024-03-01.mainnet.json"

    @pytest.mark.parametrize("bad_date", ["2024-3-1", "01-03-2024", "2024-02-30", "", None])
    def test_invalid_date(self, bad_date):
        with pytest.raises(ValueError, match="ISO 8601"):
            manifest_filepath(date=bad_date, network_id="mainnet")

    @pytest.mark.parametrize("bad_network", ["", "../mainnet", "main\\net"])
    def test_invalid_network_id(self, bad_network):
        with pytest.raises(ValueError, match="network identifier"):
            manifest_filepath(date="2024-03-01", network_id=bad_network)


class TestPersist:
    def test_writes_json_manifest(self, tmp_path, manifest):
        deployments_dir = tmp_path / "deployments"

        filepath = persist(
            manifest, network_id="mainnet", date="2024-03-01", deployments_dir=deployments_dir
        )

        assert filepath == deployments_dir / "2024-03-01.mainnet.json"
        data = json.loads(filepath.read_text())
        assert list(data) == ["dropContract", "dropMetadataContract", "creatorImpl"]
        assert data["dropContract"] == {
            "deployedAddress": "0x1",
            "verification": {"txHash": "0xaa", "verified": True},
        }

    def test_overwrites_existing_manifest(self, tmp_path, manifest):
        filepath = tmp_path / "2024-03-01.mainnet.json"
        filepath.write_text(json.dumps({"oldContract": {"deployedAddress": "0x9"}, "x": 1}))

        persist(manifest, network_id="mainnet", date="2024-03-01", deployments_dir=tmp_path)

        data = json.loads(filepath.read_text())
        assert data == manifest.to_dict()
        assert "oldContract" not in data

    def test_unwritable_location_reports_manifest(self, tmp_path, manifest, capsys):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(ManifestWriteError) as error:
            persist(
                manifest, network_id="mainnet", date="2024-03-01", deployments_dir=blocker / "sub"
            )

        assert isinstance(error.value, OSError)
        assert error.value.manifest is manifest
        assert error.value.filepath == blocker / "sub" / "2024-03-01.mainnet.json"
        assert isinstance(error.value.__cause__, OSError)

        # the live addresses must not be lost
        output = capsys.readouterr().out
        for address in ("0x1", "0x2", "0x3"):
            assert address in output
        assert json.loads(output[output.index("{") :]) == manifest.to_dict()

    def test_opaque_verification_values_are_written_as_text(self, tmp_path):
        manifest = DeploymentManifest(
            OrderedDict([("dropContract", DeploymentResult("0x1", {"txHash": b"\x01"}))])
        )

        filepath = persist(
            manifest, network_id="mainnet", date="2024-03-01", deployments_dir=tmp_path
        )

        data = json.loads(filepath.read_text())
        assert data["dropContract"]["deployedAddress"] == "0x1"
        assert data["dropContract"]["verification"] == {"txHash": str(b"\x01")}

    def test_invalid_network_id_reports_manifest(self, tmp_path, manifest, capsys):
        with pytest.raises(ManifestWriteError) as error:
            persist(manifest, network_id="../mainnet", date="2024-03-01", deployments_dir=tmp_path)

        assert error.value.manifest is manifest
        assert error.value.filepath is None
        assert isinstance(error.value.__cause__, ValueError)
        output = capsys.readouterr().out
        assert json.loads(output[output.index("{") :]) == manifest.to_dict()
        assert list(tmp_path.iterdir()) == []

    def test_failed_write_keeps_previous_manifest(self, tmp_path, manifest, monkeypatch):
        filepath = tmp_path / "2024-03-01.mainnet.json"
        previous = json.dumps({"dropContract": {"deployedAddress": "0x9", "verification": None}})
        filepath.write_text(previous)

        def replace(src, dst):
            raise OSError("No space left on device")

        monkeypatch.setattr("drops_deployment.manifest.os.replace", replace)

        with pytest.raises(ManifestWriteError, match="No space left"):
            persist(manifest, network_id="mainnet", date="2024-03-01", deployments_dir=tmp_path)

        assert filepath.read_text() == previous
        assert [path.name for path in tmp_path.iterdir()] == [filepath.name]


class TestDeploymentResult:
    @pytest.mark.parametrize(
        "response",
        [
            None,
            42,
            "0x1",
            {},
            {"deployedAddress": 1},
            {"deployedAddress": "abc"},
            {"deployedAddress": "0x"},
            {"deployedAddress": "0xZZ"},
        ],
    )
    def test_malformed_response(self, response):
        with pytest.raises(ValueError, match="Malformed"):
            DeploymentResult.from_response(response)

    def test_mapping_response(self):
        result = DeploymentResult.from_response(
            {"deployedAddress": "0x" + "ab" * 20, "verification": {"guid": "abc"}, "extra": 1}
        )
        assert result == DeploymentResult("0x" + "ab" * 20, {"guid": "abc"})
        assert result.to_dict() == {
            "deployedAddress": "0x" + "ab" * 20,
            "verification": {"guid": "abc"},
        }


def test_read_manifest(tmp_path, manifest):
    filepath = persist(manifest, network_id="local", date="2024-03-01", deployments_dir=tmp_path)

    loaded = read_manifest(filepath)

    assert list(loaded) == list(manifest)
    assert loaded.addresses() == manifest.addresses()
    assert loaded["creatorImpl"].verification == {"verified": False}


@pytest.mark.parametrize(
    "content", ["[]", '{"dropContract": {"verification": {}}}', '{"dropContract": "0x1"}']
)
def test_read_malformed_manifest(tmp_path, content):
    filepath = tmp_path / "2024-03-01.mainnet.json"
    filepath.write_text(content)
    with pytest.raises(ValueError, match="Malformed manifest"):
        read_manifest(filepath)


def test_today():
    value = today()
    assert len(value) == 10
    assert date.fromisoformat(value).isoformat() == value
