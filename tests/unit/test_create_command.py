"""Unit tests for constructor argument handling and forge create command building."""

from forge_deployments.deployments import (
    build_create_command,
    constructor_values,
    format_constructor_arg,
    normalize_constructor_args,
)
from forge_deployments.types import DeployCommand, DeployOptions, NetworkConfig


class TestConstructorArgs:
    """Test constructor argument normalization."""

    def test_values_of_dict_in_order(self):
        assert constructor_values({"name": "Token", "decimals": 18}) == ["Token", 18]

    def test_values_of_none(self):
        assert constructor_values(None) == []

    def test_format_scalars(self):
        assert format_constructor_arg(18) == "18"
        assert format_constructor_arg("0xabc") == "0xabc"
        assert format_constructor_arg(True) == "true"
        assert format_constructor_arg(False) == "false"

    def test_format_arrays(self):
        assert format_constructor_arg(["0xa", "0xb"]) == "[0xa,0xb]"
        assert format_constructor_arg([[1, 2], [3]]) == "[[1,2],[3]]"
        assert format_constructor_arg(()) == "[]"

    def test_normalize(self):
        args = {"owners": ["0xa", "0xb"], "threshold": 2, "paused": False}
        assert normalize_constructor_args(args) == ["[0xa,0xb]", "2", "false"]


class TestBuildCreateCommand:
    """Test the build_create_command function."""

    def test_basic_command(self, local_config: NetworkConfig):
        command = build_create_command("Token", local_config, [], DeployOptions())

        assert command == DeployCommand(
            program="forge",
            args=[
                "create",
                "src/Token.sol:Token",
                "--rpc-url",
                "http://127.0.0.1:8545",
                "--private-key",
                local_config.private_key,
                "--json",
                "--broadcast",
            ],
        )

    def test_constructor_args_last(self, local_config: NetworkConfig):
        command = build_create_command("Token", local_config, ["Token", "18"], DeployOptions())

        assert command.args[-3:] == ["--constructor-args", "Token", "18"]

    def test_contract_path_override(self, local_config: NetworkConfig):
        options = DeployOptions(contract_path="contracts/token/ERC20.sol:MyToken")

        command = build_create_command("MyToken", local_config, [], options)

        assert command.args[1] == "contracts/token/ERC20.sol:MyToken"

    def test_verify_flags(self, sepolia_config: NetworkConfig):
        options = DeployOptions(verify=True, etherscan_api_key="KEY")

        args = build_create_command("Token", sepolia_config, [], options).args

        assert args[-5:] == ["--verify", "--etherscan-api-key", "KEY", "--chain-id", "11155111"]

    def test_verify_needs_api_key(self, sepolia_config: NetworkConfig):
        args = build_create_command("Token", sepolia_config, [], DeployOptions(verify=True)).args

        assert "--verify" not in args

    def test_gas_price_override(self, local_config: NetworkConfig):
        """Test that with_gas_price leaves the original arguments untouched."""
        command = build_create_command("Token", local_config, [], DeployOptions())

        bumped = command.with_gas_price(30)
        rebumped = DeployCommand(command.program, bumped).with_gas_price(45)

        assert "--gas-price" not in command.args
        assert bumped[-2:] == ["--gas-price", "30"]
        assert rebumped.count("--gas-price") == 1
        assert rebumped[-2:] == ["--gas-price", "45"]
