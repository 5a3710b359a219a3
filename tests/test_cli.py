from __future__ import annotations

import json
from pathlib import Path

import cbor2
import pytest

from counterparty_decoder import cli
from counterparty_decoder.cipher import keystream_xor
from counterparty_decoder.script import push_data
from counterparty_decoder.transaction import Transaction, TxIn, TxOut, serialize_transaction

TXID = "c3d4e5f60718293a4b5c6d7e8f90a1b2c3d4e5f60718293a4b5c6d7e8f90a1b2"
P2WPKH_SHORT = b"\x03\x00" + bytes.fromhex("751e76e8199196d454941c45d1b3a323f1433bd6")


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("counterparty_decoder.config.DEFAULT_CONFIG_PATH", tmp_path / "missing.yaml")
    monkeypatch.delenv("COUNTERPARTY_NETWORK", raising=False)
    monkeypatch.delenv("COUNTERPARTY_DECODER_CONFIG", raising=False)


def _send_script() -> str:
    message = b"CNTRPRTY\x02" + cbor2.dumps([1, 1000, P2WPKH_SHORT])
    return (b"\x6a" + push_data(keystream_xor(bytes.fromhex(TXID), message))).hex()


def _reveal_hex() -> str:
    envelope = b"\x00\x63" + push_data(b"\x65" + b"XCP|100|1") + b"\x68"
    tx = Transaction(
        version=2,
        inputs=[
            TxIn(
                prev_txid=bytes.fromhex(TXID),
                prev_vout=0,
                script_sig=b"",
                sequence=0xFFFFFFFF,
                witness=[bytes(64), envelope, bytes(33)],
            )
        ],
        outputs=[TxOut(0, b"\x6a\x08CNTRPRTY")],
        locktime=0,
    )
    return serialize_transaction(tx).hex()


def test_op_return_command(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["op-return", "--script", _send_script(), "--txid", TXID])

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert output["message_name"] == "enhanced_send"
    assert output["params"]["address"] == "bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4"


def test_network_option(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["--network", "testnet", "op-return", "--script", _send_script(), "--txid", TXID])

    assert exit_code == 0
    assert json.loads(capsys.readouterr().out)["params"]["address"].startswith("tb1q")


def test_reveal_command(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["reveal", "--tx", _reveal_hex()])

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert output == {
        "message_name": "attach",
        "message_id": 101,
        "params": {"asset": "XCP", "quantity": "100", "destination_vout": "1"},
    }


def test_tx_command(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["--verbose", "tx", "--tx", _reveal_hex()])

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert [message["message_name"] for message in output] == ["taproot_commit", "attach"]


def test_nothing_found_exits_with_one(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["op-return", "--script", "6a04deadbeef", "--txid", TXID])

    assert exit_code == 1
    assert capsys.readouterr().out == ""


def test_invalid_hex_is_an_error(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["reveal", "--tx", "xyz"])

    assert excinfo.value.code == 1
    assert "invalid hex" in capsys.readouterr().err


def test_unknown_network_is_an_error(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--network", "nope", "tx", "--tx", _reveal_hex()])

    assert excinfo.value.code == 1
    assert "Unknown network" in capsys.readouterr().err
