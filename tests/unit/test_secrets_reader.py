"""Unit tests for the identifier lister and batch value fetcher."""

from __future__ import annotations

import math
import threading
from typing import Any
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from external_secrets.providers.secrets_reader import (
    BatchValueFetcher,
    SecretIdentifierLister,
    chunked,
    decode_secret_value,
    validate_fetch_options,
)
from external_secrets.shared.errors import AuthenticationError, ConnectivityError


def _echo_values(**kwargs: Any) -> dict[str, Any]:
    return {
        "SecretValues": [
            {"Name": name, "SecretString": f"{name}-value"} for name in kwargs["SecretIdList"]
        ]
    }


def _names(count: int) -> list[str]:
    return [f"secret{i}" for i in range(count)]


class TestChunked:
    def test_empty(self) -> None:
        assert list(chunked([], 20)) == []

    def test_exact_multiple(self) -> None:
        chunks = list(chunked(_names(40), 20))
        assert [len(c) for c in chunks] == [20, 20]

    def test_remainder_last(self) -> None:
        chunks = list(chunked(_names(21), 20))
        assert [len(c) for c in chunks] == [20, 1]
        assert chunks[1] == ["secret20"]

    def test_invalid_size(self) -> None:
        with pytest.raises(ValueError):
            list(chunked(["a"], 0))


class TestDecodeSecretValue:
    def test_plain_string(self) -> None:
        assert decode_secret_value({"SecretString": "hunter2"}) == "hunter2"

    def test_json_object(self) -> None:
        assert decode_secret_value({"SecretString": '{"a": 1}'}) == {"a": 1}

    @pytest.mark.parametrize("raw", ["123", '"quoted"', "[1, 2]", "true", "null"])
    def test_json_non_object_kept_verbatim(self, raw: str) -> None:
        assert decode_secret_value({"SecretString": raw}) == raw

    def test_binary(self) -> None:
        assert decode_secret_value({"SecretBinary": b"\x00\x01"}) == b"\x00\x01"

    def test_no_value(self) -> None:
        assert decode_secret_value({"Name": "x"}) is None


class TestSecretIdentifierLister:
    def test_single_page(self) -> None:
        client = MagicMock()
        client.list_secrets.return_value = {"SecretList": [{"Name": "a"}, {"Name": "b"}]}

        assert SecretIdentifierLister(client).list_all_identifiers() == ["a", "b"]
        client.list_secrets.assert_called_once_with()

    def test_threads_tokens_exactly(self) -> None:
        client = MagicMock()
        client.list_secrets.side_effect = [
            {"SecretList": [{"Name": "a"}], "NextToken": "tok-1"},
            {"SecretList": [{"Name": "b"}], "NextToken": "tok-2"},
            {"SecretList": [{"Name": "c"}]},
        ]
        filters = [{"Key": "tag-key", "Values": ["env"]}]

        result = SecretIdentifierLister(client).list_all_identifiers(filters)

        assert result == ["a", "b", "c"]
        assert [c[1] for c in client.list_secrets.call_args_list] == [
            {"Filters": filters},
            {"Filters": filters, "NextToken": "tok-1"},
            {"Filters": filters, "NextToken": "tok-2"},
        ]

    def test_empty_page_with_token_continues(self) -> None:
        client = MagicMock()
        client.list_secrets.side_effect = [
            {"SecretList": [], "NextToken": "tok"},
            {"SecretList": [{"Name": "a"}]},
        ]
        assert SecretIdentifierLister(client).list_all_identifiers() == ["a"]

    def test_duplicates_dropped(self) -> None:
        client = MagicMock()
        client.list_secrets.side_effect = [
            {"SecretList": [{"Name": "a"}, {"Name": "b"}], "NextToken": "tok"},
            {"SecretList": [{"Name": "b"}, {"Name": "c"}, {}]},
        ]
        assert SecretIdentifierLister(client).list_all_identifiers() == ["a", "b", "c"]

    def test_no_secrets(self) -> None:
        client = MagicMock()
        client.list_secrets.return_value = {"SecretList": []}
        assert SecretIdentifierLister(client).list_all_identifiers() == []

    def test_page_failure_raises(self) -> None:
        client = MagicMock()
        client.list_secrets.side_effect = [
            {"SecretList": [{"Name": "a"}], "NextToken": "tok"},
            ClientError({"Error": {"Code": "ThrottlingException"}}, "ListSecrets"),
        ]
        with pytest.raises(ConnectivityError, match="ThrottlingException"):
            SecretIdentifierLister(client).list_all_identifiers()

    def test_access_denied_is_authentication_error(self) -> None:
        client = MagicMock()
        client.list_secrets.side_effect = ClientError(
            {"Error": {"Code": "AccessDeniedException", "Message": "nope"}}, "ListSecrets"
        )
        with pytest.raises(AuthenticationError):
            SecretIdentifierLister(client).list_all_identifiers()

    def test_repeated_next_token_raises(self) -> None:
        client = MagicMock()
        client.list_secrets.return_value = {"SecretList": [{"Name": "a"}], "NextToken": "stuck"}

        with pytest.raises(ConnectivityError, match="stuck"):
            SecretIdentifierLister(client).list_all_identifiers()

        assert client.list_secrets.call_count == 2


class TestValidateFetchOptions:
    @pytest.mark.parametrize("size, workers", [(1, 1), (20, 1), (5, 8)])
    def test_valid(self, size: int, workers: int) -> None:
        validate_fetch_options(size, workers)

    @pytest.mark.parametrize(
        "size, workers, field",
        [(0, 1, "max_batch_size"), (21, 1, "max_batch_size"), (20, 0, "max_workers")],
    )
    def test_out_of_range(self, size: int, workers: int, field: str) -> None:
        with pytest.raises(ValueError, match=field):
            validate_fetch_options(size, workers)


class TestBatchValueFetcher:
    @pytest.mark.parametrize("count", [0, 1, 19, 20, 21, 25, 40])
    def test_chunk_counts(self, count: int) -> None:
        client = MagicMock()
        client.batch_get_secret_value.side_effect = _echo_values
        names = _names(count)

        values = BatchValueFetcher(client).fetch_values(names)

        calls = client.batch_get_secret_value.call_args_list
        assert len(calls) == math.ceil(count / 20)
        if count:
            expected_last = count % 20 or 20
            assert len(calls[-1][1]["SecretIdList"]) == expected_last
        sent = [name for call in calls for name in call[1]["SecretIdList"]]
        assert sent == names
        assert values == {name: f"{name}-value" for name in names}

    def test_custom_batch_size(self) -> None:
        client = MagicMock()
        client.batch_get_secret_value.side_effect = _echo_values

        BatchValueFetcher(client, max_batch_size=5).fetch_values(_names(12))

        sizes = [len(c[1]["SecretIdList"]) for c in client.batch_get_secret_value.call_args_list]
        assert sizes == [5, 5, 2]

    @pytest.mark.parametrize("size", [0, 21])
    def test_batch_size_bounds(self, size: int) -> None:
        with pytest.raises(ValueError):
            BatchValueFetcher(MagicMock(), max_batch_size=size)

    def test_chunk_failure_fails_fetch(self) -> None:
        client = MagicMock()
        client.batch_get_secret_value.side_effect = [
            _echo_values(SecretIdList=_names(20)),
            ClientError({"Error": {"Code": "InternalServiceError"}}, "BatchGetSecretValue"),
        ]
        with pytest.raises(ConnectivityError, match="BatchGetSecretValue"):
            BatchValueFetcher(client).fetch_values(_names(25))

    def test_transport_failure_fails_fetch(self) -> None:
        client = MagicMock()
        client.batch_get_secret_value.side_effect = EndpointConnectionError(
            endpoint_url="https://x"
        )
        with pytest.raises(ConnectivityError):
            BatchValueFetcher(client).fetch_values(["a"])

    def test_per_secret_errors_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        client = MagicMock()
        client.batch_get_secret_value.return_value = {
            "SecretValues": [{"Name": "ok", "SecretString": "v"}],
            "Errors": [
                {"SecretId": "locked", "ErrorCode": "DecryptionFailure", "Message": "kms"}
            ],
        }
        with caplog.at_level("WARNING", logger="external_secrets.providers.secrets_reader"):
            values = BatchValueFetcher(client).fetch_values(["ok", "locked"])

        assert values == {"ok": "v"}
        assert "locked" in caplog.text
        assert "kms" in caplog.text

    def test_follows_next_token_within_chunk(self) -> None:
        client = MagicMock()
        client.batch_get_secret_value.side_effect = [
            {"SecretValues": [{"Name": "a", "SecretString": "1"}], "NextToken": "more"},
            {"SecretValues": [{"Name": "b", "SecretString": "2"}]},
        ]

        values = BatchValueFetcher(client).fetch_values(["a", "b"])

        assert values == {"a": "1", "b": "2"}
        assert client.batch_get_secret_value.call_args_list[1][1] == {
            "SecretIdList": ["a", "b"],
            "NextToken": "more",
        }

    def test_repeated_next_token_within_chunk_raises(self) -> None:
        client = MagicMock()
        client.batch_get_secret_value.side_effect = [
            {"SecretValues": [{"Name": "a", "SecretString": "1"}], "NextToken": "again"},
            {"SecretValues": [], "NextToken": "again"},
            {"SecretValues": [{"Name": "b", "SecretString": "2"}]},
        ]

        with pytest.raises(ConnectivityError, match="again"):
            BatchValueFetcher(client).fetch_values(["a", "b"])

        assert client.batch_get_secret_value.call_count == 2

    def test_concurrent_fetch_joins_all_chunks(self) -> None:
        client = MagicMock()
        threads: set[int] = set()

        def _record(**kwargs: Any) -> dict[str, Any]:
            threads.add(threading.get_ident())
            return _echo_values(**kwargs)

        client.batch_get_secret_value.side_effect = _record

        values = BatchValueFetcher(client, max_workers=3).fetch_values(_names(60))

        assert len(values) == 60
        assert client.batch_get_secret_value.call_count == 3
        assert threading.get_ident() not in threads

    def test_concurrent_fetch_failure_propagates(self) -> None:
        client = MagicMock()

        def _fail_second(**kwargs: Any) -> dict[str, Any]:
            if kwargs["SecretIdList"][0] == "secret20":
                raise ClientError({"Error": {"Code": "InternalServiceError"}}, "BatchGet")
            return _echo_values(**kwargs)

        client.batch_get_secret_value.side_effect = _fail_second

        with pytest.raises(ConnectivityError):
            BatchValueFetcher(client, max_workers=4).fetch_values(_names(60))
