"""Unit tests for path helper functions."""

from pathlib import Path

from forge_deployments.paths import (
    get_artifact_dir,
    get_broadcast_dirs,
    get_compiled_artifact_paths,
    get_project_root,
)


class TestGetProjectRoot:
    """Test the get_project_root function."""

    def test_defaults_to_current_directory(self, tmp_path: Path, monkeypatch):
        """Test that None resolves to the current working directory."""
        monkeypatch.chdir(tmp_path)
        assert get_project_root() == Path.cwd()

    def test_relative_root_converted_to_absolute(self, tmp_path: Path, monkeypatch):
        """Test that a relative project root becomes absolute."""
        monkeypatch.chdir(tmp_path)

        root = get_project_root("relative_project")

        assert root.is_absolute()
        assert root == tmp_path / "relative_project"

    def test_accepts_string(self, tmp_path: Path):
        """Test that a string project root is accepted."""
        assert get_project_root(str(tmp_path)) == tmp_path


class TestGetArtifactDir:
    """Test the get_artifact_dir function."""

    def test_layout(self, tmp_path: Path):
        """Test that records live in build/abi/{network}."""
        assert get_artifact_dir("sepolia", tmp_path) == tmp_path / "build" / "abi" / "sepolia"

    def test_default_root(self, tmp_path: Path, monkeypatch):
        """Test that the default root is the current directory."""
        monkeypatch.chdir(tmp_path)
        assert get_artifact_dir("local") == tmp_path / "build" / "abi" / "local"


class TestGetCompiledArtifactPaths:
    """Test the get_compiled_artifact_paths function."""

    def test_build_out_comes_first(self, tmp_path: Path):
        """Test that build/out is searched before Foundry's default out/."""
        paths = get_compiled_artifact_paths("Token", tmp_path)

        assert paths == [
            tmp_path / "build" / "out" / "Token.sol" / "Token.json",
            tmp_path / "out" / "Token.sol" / "Token.json",
        ]


class TestGetBroadcastDirs:
    """Test the get_broadcast_dirs function."""

    def test_broadcast_and_cache(self, tmp_path: Path):
        """Test that both forge bookkeeping directories are returned."""
        assert get_broadcast_dirs(tmp_path) == [tmp_path / "broadcast", tmp_path / "cache"]
